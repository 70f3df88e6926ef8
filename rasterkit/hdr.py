"""Radiance RGBE (.hdr) writer with per-component run-length encoding."""

from __future__ import annotations

import math
import os
from typing import Iterable, Iterator, Sequence, Union

from rasterkit.png import ImageWriteError

_HEADER = b"#?RADIANCE\n# Written by rasterkit\nFORMAT=32-bit_rle_rgbe\n"
_MIN_RLE_WIDTH = 8
_MAX_RLE_WIDTH = 32768
_MAX_DUMP = 128
_MAX_RUN = 127
_TINY = 1e-32


def _byte(value: float) -> int:
    if math.isnan(value):
        return 0
    return min(max(int(value), 0), 255)


def linear_to_rgbe(red: float, green: float, blue: float) -> bytes:
    """Pack a linear RGB triple into four RGBE bytes (shared exponent last)."""
    brightest = max(red, max(green, blue))
    if brightest < _TINY:
        return bytes(4)
    mantissa, exponent = math.frexp(brightest)
    normalize = mantissa * 256.0 / brightest
    return bytes(
        (
            _byte(red * normalize),
            _byte(green * normalize),
            _byte(blue * normalize),
            (exponent + 128) & 0xFF,
        )
    )


def _pixel_rgbe(values: Sequence[float], channels: int) -> bytes:
    if channels >= 3:
        return linear_to_rgbe(values[0], values[1], values[2])
    return linear_to_rgbe(values[0], values[0], values[0])


def _rle_component(component: bytes) -> Iterator[bytes]:
    """Encode one component plane of a scanline as dump and run packets."""
    width = len(component)
    x = 0
    while x < width:
        r = x
        while r + 2 < width:
            if component[r] == component[r + 1] == component[r + 2]:
                break
            r += 1
        if r + 2 >= width:
            r = width
        while x < r:
            length = min(r - x, _MAX_DUMP)
            yield bytes((length,)) + component[x:x + length]
            x += length
        if r + 2 < width:
            while r < width and component[r] == component[x]:
                r += 1
            while x < r:
                length = min(r - x, _MAX_RUN)
                yield bytes((length + 128, component[x]))
                x += length


def _encode_scanline(row: Sequence[float], width: int, channels: int) -> bytes:
    pixels = [
        _pixel_rgbe(row[k * channels:(k + 1) * channels], channels)
        for k in range(width)
    ]
    if width < _MIN_RLE_WIDTH or width >= _MAX_RLE_WIDTH:
        return b"".join(pixels)
    out = bytearray((2, 2, (width & 0xFF00) >> 8, width & 0x00FF))
    for c in range(4):
        plane = bytes(pixel[c] for pixel in pixels)
        for packet in _rle_component(plane):
            out += packet
    return bytes(out)


def encode_hdr(
    data: Iterable[float],
    width: int,
    height: int,
    channels: int,
    flip: bool = False,
) -> bytes:
    """Encode linear float pixels as a Radiance HDR file.

    ``channels`` is 1 or 2 (grey, replicated to RGB) or 3 or 4 (RGB); alpha
    is discarded. Rows are given top to bottom; ``flip`` writes them bottom-up.
    """
    if data is None:
        raise ImageWriteError("no pixel data")
    if width <= 0 or height <= 0:
        raise ImageWriteError("image dimensions must be positive")
    if channels not in (1, 2, 3, 4):
        raise ImageWriteError(f"unsupported channel count: {channels}")
    values = [float(v) for v in data]
    row_len = width * channels
    if len(values) < row_len * height:
        raise ImageWriteError("pixel data is too short for the given dimensions")

    out = bytearray(_HEADER)
    out += (
        f"EXPOSURE=          1.0000000000000\n\n-Y {height} +X {width}\n"
    ).encode("ascii")
    order = range(height - 1, -1, -1) if flip else range(height)
    for r in order:
        out += _encode_scanline(values[r * row_len:(r + 1) * row_len], width, channels)
    return bytes(out)


def write_hdr(
    path: Union[str, os.PathLike],
    data: Iterable[float],
    width: int,
    height: int,
    channels: int,
    flip: bool = False,
) -> None:
    """Encode float pixel data as HDR and write it to ``path``."""
    encoded = encode_hdr(data, width, height, channels, flip)
    with open(path, "wb") as handle:
        handle.write(encoded)