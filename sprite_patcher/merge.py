"""Merge bounding boxes that overlap or sit within a tolerance of each other."""

import logging
from typing import List, Sequence

from .boxes import BoundingBox
from .config import DEFAULT_PASSES, DEFAULT_TOLERANCE

logger = logging.getLogger(__name__)


def overlaps(a: BoundingBox, b: BoundingBox, tolerance: int = DEFAULT_TOLERANCE) -> bool:
    """True unless the boxes are cleanly separated on x or y.

    Both boxes are grown by ``tolerance`` on every side before the test, so
    a gap of up to ``2 * tolerance - 1`` pixels still counts as overlapping.
    With ``tolerance=0`` boxes that only touch edges are kept apart.
    """
    return not (
        a.right + tolerance <= b.x - tolerance      # a left of b
        or a.x - tolerance >= b.right + tolerance   # a right of b
        or a.bottom + tolerance <= b.y - tolerance  # a above b
        or a.y - tolerance >= b.bottom + tolerance  # a below b
    )


def merge_pass(boxes: Sequence[BoundingBox], tolerance: int = DEFAULT_TOLERANCE) -> List[BoundingBox]:
    """One greedy merge pass.

    Each box is unioned into the first accepted box it overlaps (first
    match, not best match) or appended as a new group.  Chains such as
    A-B-C where A and C are far apart may need another pass.
    """
    merged: List[BoundingBox] = []
    for box in boxes:
        for i, existing in enumerate(merged):
            if overlaps(box, existing, tolerance):
                merged[i] = box.union(existing)
                break
        else:
            merged.append(box)
    return merged


def merge_overlapping(
    boxes: Sequence[BoundingBox],
    tolerance: int = DEFAULT_TOLERANCE,
    passes: int = DEFAULT_PASSES,
    converge: bool = False,
) -> List[BoundingBox]:
    """Merge overlapping boxes.

    Args:
        boxes: Boxes in detection order.
        tolerance: Extra margin in pixels added around each box.
        passes: Number of unconditional passes.  The default of two matches
            the long-standing sheet output; a second pass picks up overlaps
            created by unions in the first.
        converge: Keep running passes after ``passes`` until the box count
            stops shrinking, which leaves no two boxes overlapping.

    Returns:
        A new list; the input is not modified.
    """
    if tolerance < 0:
        raise ValueError(f"tolerance must be >= 0, got {tolerance}")
    if passes < 1:
        raise ValueError(f"passes must be >= 1, got {passes}")

    merged = list(boxes)
    for _ in range(passes):
        merged = merge_pass(merged, tolerance)

    if converge:
        extra = 0
        while True:
            before = len(merged)
            merged = merge_pass(merged, tolerance)
            extra += 1
            if len(merged) == before:
                break
        logger.debug("merge converged after %d extra pass(es)", extra)

    logger.debug("merged %d boxes into %d (tolerance=%d)", len(boxes), len(merged), tolerance)
    return merged
