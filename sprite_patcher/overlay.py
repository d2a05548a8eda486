"""Annotated preview of a detection run.

Draws every detected box in red with its order number tucked into the
bottom-right corner, which is the number the sprite gets in the patch text.
"""

import logging
from pathlib import Path
from typing import Sequence, Tuple

import cv2
import numpy as np
from PIL import Image

from .boxes import BoundingBox

logger = logging.getLogger(__name__)

BOX_COLOR = (255, 0, 0)
BOX_WIDTH = 2
LABEL_SCALE = 0.4


def render_overlay(
    image: np.ndarray,
    boxes: Sequence[BoundingBox],
    color: Tuple[int, int, int] = BOX_COLOR,
    line_width: int = BOX_WIDTH,
    numbered: bool = True,
) -> np.ndarray:
    """Return an RGB copy of ``image`` with the boxes drawn on it.

    Args:
        image: Source sheet (H x W x 3 or 4).
        boxes: Boxes in output order.
        color: RGB colour for outlines and numbers.
        line_width: Outline thickness in pixels.
        numbered: Draw the 1-based order number in each box.
    """
    if image.shape[2] == 4:
        # composite on light grey so transparent sheets stay readable
        alpha = image[:, :, 3:4].astype(np.float32) / 255.0
        rgb = image[:, :, :3].astype(np.float32)
        canvas = (rgb * alpha + 220.0 * (1 - alpha)).astype(np.uint8)
    else:
        canvas = image[:, :, :3].copy()
    canvas = np.ascontiguousarray(canvas)

    for idx, box in enumerate(boxes, start=1):
        cv2.rectangle(
            canvas,
            (box.x, box.y),
            (box.right - 1, box.bottom - 1),
            color,
            line_width,
        )
        if not numbered:
            continue
        label = str(idx)
        (tw, _), _ = cv2.getTextSize(label, cv2.FONT_HERSHEY_SIMPLEX, LABEL_SCALE, 1)
        origin = (box.right - 2 - tw, box.bottom - 2)
        cv2.putText(canvas, label, origin, cv2.FONT_HERSHEY_SIMPLEX,
                    LABEL_SCALE, color, 1, cv2.LINE_AA)

    return canvas


def save_overlay(
    image: np.ndarray,
    boxes: Sequence[BoundingBox],
    output_path: Path,
) -> Path:
    """Render the overlay and save it as an image.

    Returns the output path.
    """
    Image.fromarray(render_overlay(image, boxes)).save(output_path)
    logger.info("Overlay saved: %s", output_path)
    return output_path
