"""Text output for detected sprites."""

import json
import re
from pathlib import Path
from typing import Optional, Sequence, Union

from .boxes import BoundingBox
from .config import DEFAULT_PATCH_NAME, DEFAULT_SPRITE_NAME

_EXTENSION_RE = re.compile(r"\.[^/.]+$")


def patch_stem(path: Optional[Union[str, Path]]) -> str:
    """Image base name with its last extension removed.

    A name that is only an extension (``.png``) gives an empty stem, which is
    kept as is.  Only a missing path falls back to the placeholder name.
    """
    if not path:
        return DEFAULT_PATCH_NAME
    return _EXTENSION_RE.sub("", Path(path).name)


def render_patch_text(
    boxes: Sequence[BoundingBox],
    name: Optional[str] = None,
    filename: Optional[str] = None,
) -> str:
    """Describe each box as a sprite definition with one patch.

    ``name`` prefixes the numbered sprite tags (``SPRT1``, ``SPRT2``, ...);
    ``filename`` is the patch reference; an empty string is written as an
    empty reference, only None becomes the placeholder.  Offsets are negated so the patch
    is shifted onto the sprite's origin.
    """
    name = name or DEFAULT_SPRITE_NAME
    if filename is None:
        filename = DEFAULT_PATCH_NAME
    out = []
    for i, box in enumerate(boxes, start=1):
        out.append(f'Sprite "{name}{i}", {box.width}, {box.height}\n')
        out.append("{\n")
        out.append(f'\tPatch "{filename}", -{box.x}, -{box.y}\n')
        out.append("}\n\n")
    return "".join(out)


def render_boxes_json(
    boxes: Sequence[BoundingBox],
    name: Optional[str] = None,
    filename: Optional[str] = None,
) -> str:
    """Same content as :func:`render_patch_text` as a JSON document."""
    name = name or DEFAULT_SPRITE_NAME
    entries = [
        {"name": f"{name}{i}", **box.to_dict()}
        for i, box in enumerate(boxes, start=1)
    ]
    return json.dumps(
        {"patch": DEFAULT_PATCH_NAME if filename is None else filename, "sprites": entries},
        indent=2,
    )
