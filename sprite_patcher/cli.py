"""Command line interface for the sprite patch finder.

Usage:
    python -m sprite_patcher.cli detect  <image> --background "#ff00ff"  [-o patches.txt]
    python -m sprite_patcher.cli detect  <image> --pick 0,0  [--tolerance 3] [--converge]
    python -m sprite_patcher.cli overlay <image> --pick 0,0  -o preview.png

Subcommands:
  detect  — Print (or write) one patch definition per sprite
  overlay — Save the sheet with every detected box outlined and numbered
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from .config import (
    ALT_TOLERANCE,
    DEFAULT_TOLERANCE,
    DetectionConfig,
    ExportConfig,
    load_config,
)

logger = logging.getLogger("sprite_patcher")


def _setup_logging(debug: bool = False):
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _parse_point(text: str) -> Tuple[int, int]:
    parts = text.split(",")
    if len(parts) != 2:
        raise argparse.ArgumentTypeError(f"expected X,Y but got {text!r}")
    try:
        return int(parts[0]), int(parts[1])
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected X,Y but got {text!r}") from None


def _build_detection_config(args, file_cfg: dict) -> DetectionConfig:
    """Config file values, overridden by any flag given on the command line.

    ``--passes`` and ``--converge`` exclude each other on the command line;
    an explicit ``--passes`` also switches off a ``converge`` from the file.
    """
    cfg = DetectionConfig.from_dict(file_cfg.get("detection", {}))
    if args.tolerance is not None:
        cfg.tolerance = args.tolerance
    if args.passes is not None:
        cfg.passes = args.passes
        cfg.converge = False
    if args.converge:
        cfg.converge = True
    if args.row_height is not None:
        cfg.row_height = args.row_height
    if args.backend is not None:
        cfg.backend = args.backend
    cfg.validate()
    logger.debug("Detection config: %s", cfg.to_dict())
    return cfg


def _build_export_config(args, file_cfg: dict, image_path: Path) -> ExportConfig:
    from .export import patch_stem

    export_section = file_cfg.get("export", {})
    cfg = ExportConfig.from_dict(export_section)
    if args.name:
        cfg.sprite_name = args.name
    if not export_section.get("patch_name"):
        cfg.patch_name = patch_stem(image_path)
    logger.debug("Export config: %s", cfg.to_dict())
    return cfg


def _run_detection(args, file_cfg: dict):
    """Load the sheet, resolve the background and detect. Returns (raster, boxes)."""
    from .detector import detect_sprites
    from .raster import BackgroundColor, Raster, sample_color

    image_path = Path(args.image)
    raster = Raster.open(image_path)

    background = None
    if args.background:
        background = BackgroundColor.parse(args.background)
    elif args.pick:
        background = sample_color(raster, *args.pick)
        logger.info("Background picked at %s: %s", args.pick, background)

    boxes = detect_sprites(raster, background, _build_detection_config(args, file_cfg))
    return raster, boxes


# ---- Subcommand: detect ----

def cmd_detect(args):
    from .export import render_boxes_json, render_patch_text

    image_path = Path(args.image)
    file_cfg = load_config(Path(args.config) if args.config else None)
    raster, boxes = _run_detection(args, file_cfg)
    export_cfg = _build_export_config(args, file_cfg, image_path)

    if args.format == "json":
        text = render_boxes_json(boxes, export_cfg.sprite_name, export_cfg.patch_name) + "\n"
    else:
        text = render_patch_text(boxes, export_cfg.sprite_name, export_cfg.patch_name)

    if args.output:
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(text, encoding="utf-8")
        logger.info("Wrote %d sprite definitions → %s", len(boxes), output_path)
    else:
        sys.stdout.write(text)
    return 0


# ---- Subcommand: overlay ----

def cmd_overlay(args):
    from .overlay import save_overlay

    file_cfg = load_config(Path(args.config) if args.config else None)
    raster, boxes = _run_detection(args, file_cfg)
    output_path = Path(args.output)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    save_overlay(raster.pixels, boxes, output_path)
    return 0


def _add_detection_args(p):
    p.add_argument("image", help="Sprite sheet image")
    bg = p.add_mutually_exclusive_group()
    bg.add_argument("--background", "-b", default=None,
                    help="Background colour: #RRGGBB, #RRGGBBAA or r,g,b[,a]")
    bg.add_argument("--pick", type=_parse_point, default=None, metavar="X,Y",
                    help="Use the colour of this pixel as background")
    p.add_argument("--tolerance", "-t", type=int, default=None,
                   help=f"Merge margin in pixels (default: {DEFAULT_TOLERANCE}; "
                        f"older sheets used {ALT_TOLERANCE})")
    merge = p.add_mutually_exclusive_group()
    merge.add_argument("--passes", type=int, default=None,
                       help="Fixed number of merge passes (default: 2)")
    merge.add_argument("--converge", action="store_true",
                       help="Merge until no boxes overlap")
    p.add_argument("--row-height", type=int, default=None,
                   help="Row band height for reading order (default: 20)")
    p.add_argument("--backend", choices=["flood", "opencv"], default=None,
                   help="Component labelling backend (default: flood)")
    p.add_argument("--config", default=None, help="JSON config file")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sprite-patcher",
        description="Find sprites on a sheet and describe them as patches",
    )
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    sub = parser.add_subparsers(dest="command", required=True)

    # -- detect --
    p_detect = sub.add_parser("detect", help="Emit patch definitions")
    _add_detection_args(p_detect)
    p_detect.add_argument("--name", "-n", default=None,
                          help="Sprite name prefix (default: SPRT)")
    p_detect.add_argument("--format", choices=["text", "json"], default="text")
    p_detect.add_argument("-o", "--output", default=None,
                          help="Output file (default: stdout)")
    p_detect.set_defaults(func=cmd_detect)

    # -- overlay --
    p_overlay = sub.add_parser("overlay", help="Save an annotated preview")
    _add_detection_args(p_overlay)
    p_overlay.add_argument("-o", "--output", required=True, help="Output image path")
    p_overlay.set_defaults(func=cmd_overlay)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _setup_logging(args.debug)
    try:
        return args.func(args)
    except (ValueError, IndexError, OSError) as exc:
        logger.error("%s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
