"""Read-only RGBA pixel access and background colours.

Decoding is left to Pillow; everything downstream works on an
``(H, W, 4)`` uint8 numpy array wrapped in :class:`Raster`.
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple, Union

import numpy as np
from PIL import Image

_HEX_RE = re.compile(r"^#?([0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")


@dataclass(frozen=True)
class BackgroundColor:
    """The colour that marks empty space between sprites.

    Alpha defaults to fully opaque when the caller leaves it out.
    """
    r: int
    g: int
    b: int
    a: int = 255

    def __post_init__(self):
        for name in ("r", "g", "b", "a"):
            value = getattr(self, name)
            if not 0 <= int(value) <= 255:
                raise ValueError(f"channel {name}={value} outside 0..255")

    @classmethod
    def parse(cls, text: str) -> "BackgroundColor":
        """Parse ``#RRGGBB``, ``#RRGGBBAA`` or ``r,g,b[,a]``."""
        text = text.strip()
        match = _HEX_RE.match(text)
        if match:
            digits = match.group(1)
            channels = [int(digits[i:i + 2], 16) for i in range(0, len(digits), 2)]
            return cls(*channels)

        parts = [p.strip() for p in text.split(",")]
        if len(parts) not in (3, 4):
            raise ValueError(f"cannot parse background colour {text!r}")
        try:
            channels = [int(p) for p in parts]
        except ValueError:
            raise ValueError(f"cannot parse background colour {text!r}") from None
        return cls(*channels)

    def as_tuple(self) -> Tuple[int, int, int, int]:
        return (self.r, self.g, self.b, self.a)

    def as_array(self) -> np.ndarray:
        return np.array(self.as_tuple(), dtype=np.uint8)

    def __str__(self) -> str:
        return "#{:02x}{:02x}{:02x}{:02x}".format(*self.as_tuple())


class Raster:
    """Decoded RGBA pixels of one sprite sheet."""

    def __init__(self, pixels: np.ndarray, name: str = ""):
        self.pixels = pixels
        self.name = name

    @classmethod
    def from_array(cls, array: np.ndarray, name: str = "") -> "Raster":
        """Wrap an ``(H, W, 3)`` or ``(H, W, 4)`` array.

        RGB input is given an opaque alpha channel so that comparisons
        against a background colour always see four channels.  Only integer
        arrays with every channel in 0..255 are accepted; anything else
        would change pixel values when cast to uint8.
        """
        array = np.asarray(array)
        if array.ndim != 3 or array.shape[2] not in (3, 4):
            raise ValueError(f"expected an HxWx3 or HxWx4 array, got shape {array.shape}")
        if not np.issubdtype(array.dtype, np.integer):
            raise ValueError(f"expected integer channels, got dtype {array.dtype}")
        if array.size and (int(array.min()) < 0 or int(array.max()) > 255):
            raise ValueError(
                f"channel values outside 0..255 (min={int(array.min())}, max={int(array.max())})"
            )
        if array.shape[2] == 3:
            alpha = np.full(array.shape[:2] + (1,), 255, dtype=np.uint8)
            array = np.concatenate([array.astype(np.uint8), alpha], axis=2)
        pixels = np.array(array, dtype=np.uint8, order="C")
        pixels.setflags(write=False)
        return cls(pixels, name=name)

    @classmethod
    def from_image(cls, image: Image.Image, name: str = "") -> "Raster":
        if image.mode != "RGBA":
            image = image.convert("RGBA")
        return cls.from_array(np.array(image), name=name)

    @classmethod
    def open(cls, path: Union[str, Path]) -> "Raster":
        with Image.open(path) as img:
            return cls.from_image(img, name=Path(path).name)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def is_empty(self) -> bool:
        return self.width == 0 or self.height == 0

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def pixel(self, x: int, y: int) -> Tuple[int, int, int, int]:
        """Return the (r, g, b, a) channels at ``(x, y)``."""
        if not self.in_bounds(x, y):
            raise IndexError(f"pixel ({x}, {y}) outside {self.width}x{self.height} raster")
        r, g, b, a = self.pixels[y, x]
        return int(r), int(g), int(b), int(a)

    def background_mask(self, background: BackgroundColor) -> np.ndarray:
        """Boolean ``(H, W)`` mask of pixels matching all four channels."""
        return np.all(self.pixels == background.as_array(), axis=2)

    def __repr__(self) -> str:
        return f"Raster({self.width}x{self.height}, name={self.name!r})"


def sample_color(raster: Raster, x: int, y: int) -> BackgroundColor:
    """Pick the background from a pixel of the sheet, alpha included."""
    return BackgroundColor(*raster.pixel(x, y))
