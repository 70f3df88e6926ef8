"""PNG encoding with adaptive per-row filtering."""

from __future__ import annotations

import os
from typing import Union

from rasterkit.deflate import zlib_compress

_SIGNATURE = bytes((137, 80, 78, 71, 13, 10, 26, 10))
_COLOR_TYPES = {1: 0, 2: 4, 3: 2, 4: 6}
_FILTER_COUNT = 5


class ImageWriteError(ValueError):
    """Raised when image data cannot be encoded."""


def _make_crc_table() -> tuple[int, ...]:
    table = []
    for n in range(256):
        c = n
        for _ in range(8):
            c = (c >> 1) ^ 0xEDB88320 if c & 1 else c >> 1
        table.append(c)
    return tuple(table)


_CRC_TABLE = _make_crc_table()


def crc32(data: bytes) -> int:
    """CRC-32 (the PNG/zlib polynomial) of ``data``."""
    crc = 0xFFFFFFFF
    for byte in bytes(data):
        crc = (crc >> 8) ^ _CRC_TABLE[(byte ^ crc) & 0xFF]
    return crc ^ 0xFFFFFFFF


def _paeth(a: int, b: int, c: int) -> int:
    p = a + b - c
    pa, pb, pc = abs(p - a), abs(p - b), abs(p - c)
    if pa <= pb and pa <= pc:
        return a
    if pb <= pc:
        return b
    return c


def _filter_row(filter_type: int, row: bytes, prior: bytes, n: int) -> bytes:
    """Apply one PNG filter to ``row``; ``prior`` is the row above (zeros for the first)."""
    if filter_type == 0:
        return bytes(row)
    out = bytearray(len(row))
    for i, value in enumerate(row):
        left = row[i - n] if i >= n else 0
        up = prior[i]
        if filter_type == 1:
            predicted = left
        elif filter_type == 2:
            predicted = up
        elif filter_type == 3:
            predicted = (left + up) >> 1
        else:
            upper_left = prior[i - n] if i >= n else 0
            predicted = _paeth(left, up, upper_left)
        out[i] = (value - predicted) & 0xFF
    return bytes(out)


def _estimate(line: bytes) -> int:
    return sum(b if b < 128 else 256 - b for b in line)


def _chunk(tag: bytes, payload: bytes) -> bytes:
    body = tag + payload
    return len(payload).to_bytes(4, "big") + body + crc32(body).to_bytes(4, "big")


def encode_png(
    pixels: bytes,
    width: int,
    height: int,
    channels: int,
    stride: int = 0,
    compression_level: int = 8,
    force_filter: int = -1,
    flip: bool = False,
) -> bytes:
    """Encode 8-bit interleaved pixel data as a PNG file.

    ``channels`` is 1 (grey), 2 (grey+alpha), 3 (RGB) or 4 (RGBA). ``stride``
    is the distance in bytes between rows, 0 meaning tightly packed.
    ``force_filter`` selects a filter 0..4 for every row; any other value
    picks the best filter per row. ``flip`` writes the rows bottom-up.
    """
    if channels not in _COLOR_TYPES:
        raise ImageWriteError(f"unsupported channel count: {channels}")
    if width < 0 or height < 0:
        raise ImageWriteError("image dimensions must not be negative")
    row_bytes = width * channels
    if stride == 0:
        stride = row_bytes
    if stride < row_bytes:
        raise ImageWriteError("stride is smaller than a row of pixels")
    data = bytes(pixels)
    if height and len(data) < (height - 1) * stride + row_bytes:
        raise ImageWriteError("pixel data is too short for the given dimensions")
    if force_filter >= _FILTER_COUNT:
        force_filter = -1

    rows = [data[r * stride:r * stride + row_bytes] for r in range(height)]
    if flip:
        rows.reverse()

    filtered = bytearray()
    prior = bytes(row_bytes)
    for row in rows:
        if force_filter > -1:
            chosen = force_filter
            line = _filter_row(chosen, row, prior, channels)
        else:
            chosen, line = 0, b""
            best_value = None
            for filter_type in range(_FILTER_COUNT):
                candidate = _filter_row(filter_type, row, prior, channels)
                value = _estimate(candidate)
                if best_value is None or value < best_value:
                    best_value, chosen, line = value, filter_type, candidate
        filtered.append(chosen)
        filtered += line
        prior = row

    compressed = zlib_compress(bytes(filtered), compression_level)
    header = (
        width.to_bytes(4, "big")
        + height.to_bytes(4, "big")
        + bytes((8, _COLOR_TYPES[channels], 0, 0, 0))
    )
    return (
        _SIGNATURE
        + _chunk(b"IHDR", header)
        + _chunk(b"IDAT", compressed)
        + _chunk(b"IEND", b"")
    )


def write_png(
    path: Union[str, os.PathLike],
    pixels: bytes,
    width: int,
    height: int,
    channels: int,
    stride: int = 0,
    compression_level: int = 8,
    force_filter: int = -1,
    flip: bool = False,
) -> None:
    """Encode pixel data as PNG and write it to ``path``."""
    encoded = encode_png(
        pixels, width, height, channels, stride, compression_level, force_filter, flip
    )
    with open(path, "wb") as handle:
        handle.write(encoded)