"""Uncompressed BMP and (optionally run-length encoded) TGA writers."""

from __future__ import annotations

import os
import struct
from typing import Iterator, Union

from rasterkit.png import ImageWriteError

_BACKGROUND = (255, 0, 255)
_FILE_HEADER_SIZE = 14
_INFO_HEADER_SIZE = 40
_MAX_PACKET = 128


def _checked(pixels: bytes, width: int, height: int, channels: int) -> bytes:
    if channels not in (1, 2, 3, 4):
        raise ImageWriteError(f"unsupported channel count: {channels}")
    if width < 0 or height < 0:
        raise ImageWriteError("image dimensions must not be negative")
    data = bytes(pixels)
    if len(data) < width * height * channels:
        raise ImageWriteError("pixel data is too short for the given dimensions")
    return data


def _trunc_div(a: int, b: int) -> int:
    quotient = abs(a) // b
    return quotient if a >= 0 else -quotient


def _encode_pixel(d: bytes, channels: int, write_alpha: bool, expand_mono: bool) -> bytes:
    """One pixel in BGR order, with alpha appended when ``write_alpha`` is set."""
    if channels in (1, 2):
        body = bytes((d[0], d[0], d[0])) if expand_mono else bytes((d[0],))
    elif channels == 4 and not write_alpha:
        # Blend against a magenta background when alpha is dropped.
        px = [
            bg + _trunc_div((d[k] - bg) * d[3], 255)
            for k, bg in enumerate(_BACKGROUND)
        ]
        body = bytes((px[2], px[1], px[0]))
    else:
        body = bytes((d[2], d[1], d[0]))
    if write_alpha:
        body += bytes((d[channels - 1],))
    return body


def _rows(data: bytes, width: int, height: int, channels: int, bottom_up: bool) -> Iterator[bytes]:
    row_bytes = width * channels
    order = range(height - 1, -1, -1) if bottom_up else range(height)
    for r in order:
        yield data[r * row_bytes:(r + 1) * row_bytes]


def _split_pixels(row: bytes, width: int, channels: int) -> list[bytes]:
    return [row[k * channels:(k + 1) * channels] for k in range(width)]


def encode_bmp(
    pixels: bytes, width: int, height: int, channels: int, flip: bool = False
) -> bytes:
    """Encode 8-bit interleaved pixels as a 24-bit BMP.

    Grey input is expanded to RGB and alpha is composited against magenta.
    Rows are stored bottom-up; ``flip`` reverses that.
    """
    data = _checked(pixels, width, height, channels)
    pad = (-width * 3) & 3
    offset = _FILE_HEADER_SIZE + _INFO_HEADER_SIZE
    out = bytearray(
        struct.pack("<2sIHHI", b"BM", offset + (width * 3 + pad) * height, 0, 0, offset)
    )
    out += struct.pack("<IIIHH6I", _INFO_HEADER_SIZE, width, height, 1, 24, 0, 0, 0, 0, 0, 0)
    padding = bytes(pad)
    for row in _rows(data, width, height, channels, bottom_up=not flip):
        for pixel in _split_pixels(row, width, channels):
            out += _encode_pixel(pixel, channels, write_alpha=False, expand_mono=True)
        out += padding
    return bytes(out)


def _rle_row(pixels: list[bytes], channels: int, has_alpha: bool) -> bytes:
    out = bytearray()
    width = len(pixels)
    i = 0
    while i < width:
        differs = True
        length = 1
        if i < width - 1:
            length = 2
            differs = pixels[i] != pixels[i + 1]
            if differs:
                prev = i
                for k in range(i + 2, width):
                    if length >= _MAX_PACKET:
                        break
                    if pixels[prev] != pixels[k]:
                        prev += 1
                        length += 1
                    else:
                        length -= 1
                        break
            else:
                for k in range(i + 2, width):
                    if length >= _MAX_PACKET:
                        break
                    if pixels[i] == pixels[k]:
                        length += 1
                    else:
                        break
        if differs:
            out.append((length - 1) & 0xFF)
            for pixel in pixels[i:i + length]:
                out += _encode_pixel(pixel, channels, has_alpha, expand_mono=False)
        else:
            out.append((length - 129) & 0xFF)
            out += _encode_pixel(pixels[i], channels, has_alpha, expand_mono=False)
        i += length
    return bytes(out)


def encode_tga(
    pixels: bytes,
    width: int,
    height: int,
    channels: int,
    rle: bool = True,
    flip: bool = False,
) -> bytes:
    """Encode 8-bit interleaved pixels as a TGA file.

    Grey and grey+alpha become a monochrome image, RGB and RGBA a true-colour
    one. Rows are stored bottom-up; ``flip`` reverses that.
    """
    data = _checked(pixels, width, height, channels)
    has_alpha = channels in (2, 4)
    color_bytes = channels - 1 if has_alpha else channels
    image_type = 3 if color_bytes < 2 else 2
    if rle:
        image_type += 8
    out = bytearray(
        struct.pack(
            "<BBBHHBHHHHBB",
            0, 0, image_type, 0, 0, 0, 0, 0,
            width & 0xFFFF, height & 0xFFFF,
            ((color_bytes + has_alpha) * 8) & 0xFF, has_alpha * 8,
        )
    )
    for row in _rows(data, width, height, channels, bottom_up=not flip):
        row_pixels = _split_pixels(row, width, channels)
        if rle:
            out += _rle_row(row_pixels, channels, has_alpha)
        else:
            for pixel in row_pixels:
                out += _encode_pixel(pixel, channels, has_alpha, expand_mono=False)
    return bytes(out)


def write_bmp(
    path: Union[str, os.PathLike],
    pixels: bytes,
    width: int,
    height: int,
    channels: int,
    flip: bool = False,
) -> None:
    """Encode pixel data as BMP and write it to ``path``."""
    encoded = encode_bmp(pixels, width, height, channels, flip)
    with open(path, "wb") as handle:
        handle.write(encoded)


def write_tga(
    path: Union[str, os.PathLike],
    pixels: bytes,
    width: int,
    height: int,
    channels: int,
    rle: bool = True,
    flip: bool = False,
) -> None:
    """Encode pixel data as TGA and write it to ``path``."""
    encoded = encode_tga(pixels, width, height, channels, rle, flip)
    with open(path, "wb") as handle:
        handle.write(encoded)