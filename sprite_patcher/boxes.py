"""Axis-aligned bounding boxes for detected sprites."""

from dataclasses import dataclass


@dataclass(frozen=True)
class BoundingBox:
    """A sprite's extent on the sheet, in pixels.

    ``right`` and ``bottom`` are exclusive, so a single pixel at (3, 4) is
    ``BoundingBox(3, 4, 1, 1)`` with ``right == 4``.
    """
    x: int
    y: int
    width: int
    height: int

    @classmethod
    def from_extents(cls, min_x: int, min_y: int, max_x: int, max_y: int) -> "BoundingBox":
        """Build a box from inclusive pixel extents."""
        return cls(min_x, min_y, max_x - min_x + 1, max_y - min_y + 1)

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    @property
    def area(self) -> int:
        return self.width * self.height

    @property
    def center_x(self) -> float:
        return self.x + self.width / 2

    def union(self, other: "BoundingBox") -> "BoundingBox":
        x0 = min(self.x, other.x)
        y0 = min(self.y, other.y)
        x1 = max(self.right, other.right)
        y1 = max(self.bottom, other.bottom)
        return BoundingBox(x0, y0, x1 - x0, y1 - y0)

    def to_dict(self) -> dict:
        return {
            "x": int(self.x),
            "y": int(self.y),
            "width": int(self.width),
            "height": int(self.height),
        }
