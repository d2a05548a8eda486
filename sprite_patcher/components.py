"""Connected-component labelling of non-background pixels.

Two backends produce identical output:
  1. ``flood``  - iterative 8-connected flood fill over a visited mask
  2. ``opencv`` - ``cv2.connectedComponentsWithStats`` with 8-connectivity

Boxes come out in seed order, i.e. sorted by the row-major position of
each component's first pixel.  The merge step is order sensitive, so both
backends must agree on this.
"""

import logging
from typing import List

import cv2
import numpy as np

from .boxes import BoundingBox
from .raster import BackgroundColor, Raster

logger = logging.getLogger(__name__)

NEIGHBOURS_8 = (
    (0, 1), (0, -1), (1, 0), (-1, 0),
    (1, 1), (1, -1), (-1, 1), (-1, -1),
)


def _flood_box(visited: np.ndarray, seed_x: int, seed_y: int) -> BoundingBox:
    """Claim every pixel reachable from the seed and return their extent.

    ``visited`` is True for background and already-claimed pixels.  Pixels
    are marked when pushed, so each one enters the stack at most once and
    the stack never outgrows the raster.
    """
    h, w = visited.shape
    visited[seed_y, seed_x] = True
    stack = [(seed_x, seed_y)]
    min_x = max_x = seed_x
    min_y = max_y = seed_y

    while stack:
        x, y = stack.pop()
        if x < min_x:
            min_x = x
        elif x > max_x:
            max_x = x
        if y < min_y:
            min_y = y
        elif y > max_y:
            max_y = y

        for dx, dy in NEIGHBOURS_8:
            nx, ny = x + dx, y + dy
            if 0 <= nx < w and 0 <= ny < h and not visited[ny, nx]:
                visited[ny, nx] = True
                stack.append((nx, ny))

    return BoundingBox.from_extents(min_x, min_y, max_x, max_y)


def _find_flood(raster: Raster, background: BackgroundColor) -> List[BoundingBox]:
    # background pixels are claimed up front and never seed a fill
    visited = raster.background_mask(background)
    w = raster.width
    boxes = []
    for flat in np.flatnonzero(~visited):
        y, x = divmod(int(flat), w)
        if visited[y, x]:
            continue
        boxes.append(_flood_box(visited, x, y))
    return boxes


def _find_opencv(raster: Raster, background: BackgroundColor) -> List[BoundingBox]:
    foreground = (~raster.background_mask(background)).astype(np.uint8)
    num_labels, labels, stats, _ = cv2.connectedComponentsWithStats(
        foreground, connectivity=8
    )
    if num_labels <= 1:
        return []

    # first raster index of each label, to restore seed order
    found, first_index = np.unique(labels.ravel(), return_index=True)
    order = [
        int(label) for _, label in sorted(zip(first_index, found)) if label != 0
    ]

    boxes = []
    for label in order:
        x, y, w, h = (int(v) for v in stats[label, :4])
        boxes.append(BoundingBox(x, y, w, h))
    return boxes


def find_components(
    raster: Raster,
    background: BackgroundColor,
    backend: str = "flood",
) -> List[BoundingBox]:
    """Return one bounding box per 8-connected run of non-background pixels.

    Args:
        raster: The decoded sheet.
        background: Colour of empty space; matched on all four channels.
        backend: ``"flood"`` or ``"opencv"``.

    Returns:
        Boxes in seed order.  Empty for an all-background or zero-sized
        raster.
    """
    if raster.is_empty:
        return []
    if backend == "flood":
        boxes = _find_flood(raster, background)
    elif backend == "opencv":
        boxes = _find_opencv(raster, background)
    else:
        raise ValueError(f"unknown component backend: {backend!r}")
    logger.debug("%s: %d components (%s backend)", raster.name or "raster", len(boxes), backend)
    return boxes
