"""Detection and export configuration: defaults, dataclasses, JSON loading."""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------
DEFAULT_TOLERANCE = 2
ALT_TOLERANCE = 3           # fixed default used by the older sheet variant
DEFAULT_PASSES = 2
ROW_HEIGHT = 20             # row spacing heuristic, not derived from boxes

DEFAULT_SPRITE_NAME = "SPRT"
DEFAULT_PATCH_NAME = "FILENAME"

BACKENDS = ("flood", "opencv")


@dataclass
class DetectionConfig:
    """Knobs for one detection run."""
    tolerance: int = DEFAULT_TOLERANCE
    passes: int = DEFAULT_PASSES
    converge: bool = False          # keep merging until the box count settles
    row_height: int = ROW_HEIGHT
    backend: str = "flood"

    def validate(self) -> "DetectionConfig":
        if self.tolerance < 0:
            raise ValueError(f"tolerance must be >= 0, got {self.tolerance}")
        if self.passes < 1:
            raise ValueError(f"passes must be >= 1, got {self.passes}")
        if self.row_height < 1:
            raise ValueError(f"row_height must be >= 1, got {self.row_height}")
        if self.backend not in BACKENDS:
            raise ValueError(
                f"unknown backend {self.backend!r} (expected one of {', '.join(BACKENDS)})"
            )
        return self

    def to_dict(self) -> dict:
        return {
            "tolerance": int(self.tolerance),
            "passes": int(self.passes),
            "converge": bool(self.converge),
            "row_height": int(self.row_height),
            "backend": str(self.backend),
        }

    @classmethod
    def from_dict(cls, d: dict) -> "DetectionConfig":
        return cls(
            tolerance=int(d.get("tolerance", DEFAULT_TOLERANCE)),
            passes=int(d.get("passes", DEFAULT_PASSES)),
            converge=bool(d.get("converge", False)),
            row_height=int(d.get("row_height", ROW_HEIGHT)),
            backend=str(d.get("backend", "flood")),
        )


@dataclass
class ExportConfig:
    """Names used in the patch text."""
    sprite_name: str = DEFAULT_SPRITE_NAME
    patch_name: str = DEFAULT_PATCH_NAME

    def to_dict(self) -> dict:
        return {"sprite_name": self.sprite_name, "patch_name": self.patch_name}

    @classmethod
    def from_dict(cls, d: dict) -> "ExportConfig":
        return cls(
            sprite_name=d.get("sprite_name") or DEFAULT_SPRITE_NAME,
            patch_name=d.get("patch_name") or DEFAULT_PATCH_NAME,
        )


def load_config(path: Optional[Path]) -> dict:
    """Read a JSON config file.

    The file may hold a ``detection`` and/or ``export`` section, or the
    detection keys at the top level.  A missing path yields an empty dict.
    """
    if path is None:
        return {}
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a JSON object at the top level")
    if "detection" not in data and "export" not in data:
        data = {"detection": data}
    for section in ("detection", "export"):
        if not isinstance(data.get(section, {}), dict):
            raise ValueError(f"{path}: section {section!r} must be a JSON object")
    return data
