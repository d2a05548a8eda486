"""One detection run: components -> merge -> reading order."""

import logging
from typing import List, Optional

from .boxes import BoundingBox
from .components import find_components
from .config import DetectionConfig
from .merge import merge_overlapping
from .ordering import order_boxes
from .raster import BackgroundColor, Raster

logger = logging.getLogger(__name__)


class NoBackgroundError(ValueError):
    """Detection was requested before a background colour was chosen."""

    def __init__(self, message: str = "no background selected"):
        super().__init__(message)


def detect_sprites(
    raster: Raster,
    background: Optional[BackgroundColor],
    config: Optional[DetectionConfig] = None,
) -> List[BoundingBox]:
    """Find the sprites on a sheet and return their boxes in reading order.

    Every run starts from fresh working state; nothing is kept between
    calls.

    Raises:
        NoBackgroundError: ``background`` is None.
        ValueError: the configuration is out of range.
    """
    if background is None:
        raise NoBackgroundError()
    cfg = (config or DetectionConfig()).validate()

    components = find_components(raster, background, backend=cfg.backend)
    merged = merge_overlapping(
        components,
        tolerance=cfg.tolerance,
        passes=cfg.passes,
        converge=cfg.converge,
    )
    ordered = order_boxes(merged, row_height=cfg.row_height)

    logger.info(
        "%s: %d components -> %d sprites (bg=%s, tolerance=%d)",
        raster.name or "raster", len(components), len(ordered),
        background, cfg.tolerance,
    )
    return ordered
