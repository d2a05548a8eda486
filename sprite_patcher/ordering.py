"""Reading order for detected sprites: rows top to bottom, then left to right."""

from typing import List, Sequence

from .boxes import BoundingBox
from .config import ROW_HEIGHT


def row_index(box: BoundingBox, top: int, row_height: int = ROW_HEIGHT) -> int:
    """Row bucket of ``box`` counted in ``row_height`` steps from ``top``."""
    return (box.y - top) // row_height


def order_boxes(boxes: Sequence[BoundingBox], row_height: int = ROW_HEIGHT) -> List[BoundingBox]:
    """Sort boxes into reading order.

    Rows are fixed ``row_height`` bands measured from the topmost box, so
    small vertical jitter within a row does not change the order.  Sprites
    taller than a band on tightly packed rows can land in the wrong row;
    the band size is a spacing heuristic and is not derived from the boxes.
    Ties keep their input order.
    """
    if row_height < 1:
        raise ValueError(f"row_height must be >= 1, got {row_height}")
    if not boxes:
        return []
    top = min(box.y for box in boxes)
    return sorted(boxes, key=lambda b: (row_index(b, top, row_height), b.center_x))
