"""Sprite sheet patch finder.

Locates the sprites packed into a sheet around a background colour and
describes each one as a patch (size plus placement offset).
"""

from __future__ import annotations

from .boxes import BoundingBox
from .components import find_components
from .detector import NoBackgroundError, detect_sprites
from .export import patch_stem, render_patch_text
from .merge import merge_overlapping, overlaps
from .ordering import order_boxes
from .raster import BackgroundColor, Raster, sample_color

__all__ = [
    "BackgroundColor",
    "BoundingBox",
    "NoBackgroundError",
    "Raster",
    "detect_sprites",
    "find_components",
    "merge_overlapping",
    "order_boxes",
    "overlaps",
    "patch_stem",
    "render_patch_text",
    "sample_color",
]
