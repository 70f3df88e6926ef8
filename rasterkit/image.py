"""An in-memory RGBA raster with simple drawing operations."""

from __future__ import annotations

import math
import os
from typing import Union

from rasterkit.color import Color
from rasterkit.png import encode_png, write_png

_CHANNELS = 4


def _to_byte(value: float) -> int:
    """Scale a ``[0, 1]`` channel to a byte, truncating and saturating."""
    scaled = value * 255.0
    if math.isnan(scaled):
        return 0
    return min(max(int(scaled), 0), 255)


class Image:
    """A ``width`` by ``height`` grid of 8-bit RGBA pixels, initially all zero."""

    def __init__(self, width: int, height: int) -> None:
        width = int(width)
        height = int(height)
        if width < 0 or height < 0:
            raise ValueError("image dimensions must not be negative")
        self._width = width
        self._height = height
        self._pixels = bytearray(width * height * _CHANNELS)

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def pixels(self) -> bytes:
        """The raw RGBA bytes, row by row from the top."""
        return bytes(self._pixels)

    def _offset(self, x: int, y: int) -> int:
        return (x + self._width * y) * _CHANNELS

    def _contains(self, x: int, y: int) -> bool:
        return 0 <= x < self._width and 0 <= y < self._height

    def to_png(self) -> bytes:
        """Encode the image as a PNG file."""
        return encode_png(bytes(self._pixels), self._width, self._height, _CHANNELS)

    def save_as(self, filename: Union[str, os.PathLike]) -> None:
        """Write the image to ``filename`` as PNG."""
        write_png(filename, bytes(self._pixels), self._width, self._height, _CHANNELS)

    def get_pixel(self, x: int, y: int) -> Color:
        """The colour at ``(x, y)``; coordinates outside the image are clamped to its edge."""
        if not self._pixels:
            raise IndexError("image has no pixels")
        x = min(max(int(x), 0), self._width - 1)
        y = min(max(int(y), 0), self._height - 1)
        offset = self._offset(x, y)
        red, green, blue, alpha = self._pixels[offset:offset + _CHANNELS]
        return Color(red / 255.0, green / 255.0, blue / 255.0, alpha / 255.0)

    def set_pixel(self, x: int, y: int, color: Color) -> None:
        """Store ``color`` at ``(x, y)``; raises IndexError outside the image."""
        x, y = int(x), int(y)
        if not self._contains(x, y):
            raise IndexError(f"pixel ({x}, {y}) is outside a {self._width}x{self._height} image")
        offset = self._offset(x, y)
        self._pixels[offset:offset + _CHANNELS] = bytes(
            _to_byte(c) for c in (color.red, color.green, color.blue, color.alpha)
        )

    def clear(self, color: Color) -> None:
        """Fill every pixel with ``color``."""
        packed = bytes(
            _to_byte(c) for c in (color.red, color.green, color.blue, color.alpha)
        )
        self._pixels[:] = packed * (self._width * self._height)

    def draw_line(
        self, start_x: int, start_y: int, end_x: int, end_y: int, color: Color
    ) -> None:
        """Step from the start point towards the end point one unit at a time.

        The end point itself is not drawn, and steps that fall outside the
        image are skipped.
        """
        delta_x = end_x - start_x
        delta_y = end_y - start_y
        dist = math.sqrt(delta_x * delta_x + delta_y * delta_y)
        if dist == 0:
            return
        step_x = delta_x / dist
        step_y = delta_y / dist
        x, y = float(start_x), float(start_y)
        for _ in range(math.ceil(dist)):
            px, py = int(x), int(y)
            if self._contains(px, py):
                self.set_pixel(px, py, color)
            x += step_x
            y += step_y