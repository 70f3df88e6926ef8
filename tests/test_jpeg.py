import random

import pytest

from rasterkit.jpeg import encode_jpeg, write_jpeg
from rasterkit.png import ImageWriteError


def _noise(width, height, channels, seed=1):
    rng = random.Random(seed)
    return bytes(rng.randrange(256) for _ in range(width * height * channels))


def _gradient(width, height):
    return bytes(
        value
        for y in range(height)
        for x in range(width)
        for value in ((x * 13) % 256, (y * 29) % 256, (x + y) % 256)
    )


def _sof(encoded):
    index = encoded.index(b"\xff\xc0")
    return encoded[index:index + 19]


def test_starts_with_jfif_header_and_ends_with_eoi():
    encoded = encode_jpeg(_gradient(10, 10), 10, 10, 3)
    assert encoded[:4] == b"\xff\xd8\xff\xe0"
    assert encoded[6:11] == b"JFIF\x00"
    assert encoded[20:25] == b"\xff\xdb\x00\x84\x00"
    assert encoded[-2:] == b"\xff\xd9"


def test_frame_header_holds_dimensions():
    encoded = encode_jpeg(_gradient(300, 2), 300, 2, 3)
    sof = _sof(encoded)
    assert sof[5:7] == (2).to_bytes(2, "big")
    assert sof[7:9] == (300).to_bytes(2, "big")
    assert sof[9] == 3


@pytest.mark.parametrize("quality, sampling", [(90, 0x22), (50, 0x22), (91, 0x11), (100, 0x11)])
def test_subsampling_depends_on_quality(quality, sampling):
    encoded = encode_jpeg(_gradient(8, 8), 8, 8, 3, quality)
    assert _sof(encoded)[11] == sampling


def test_quality_fifty_uses_base_tables():
    encoded = encode_jpeg(_gradient(8, 8), 8, 8, 3, 50)
    assert encoded[25] == 16
    assert encoded[89] == 1
    assert encoded[90] == 17


def test_quality_hundred_gives_unit_tables():
    encoded = encode_jpeg(_gradient(8, 8), 8, 8, 3, 100)
    assert encoded[25:89] == bytes([1] * 64)
    assert encoded[90:154] == bytes([1] * 64)


def test_zero_quality_means_ninety():
    pixels = _noise(20, 12, 3)
    assert encode_jpeg(pixels, 20, 12, 3, 0) == encode_jpeg(pixels, 20, 12, 3, 90)


def test_higher_quality_is_larger_for_noise():
    pixels = _noise(32, 32, 3)
    assert len(encode_jpeg(pixels, 32, 32, 3, 100)) > len(encode_jpeg(pixels, 32, 32, 3, 10))


@pytest.mark.parametrize("quality", [50, 95])
def test_flip_matches_reversed_rows(quality):
    width, height = 17, 9
    pixels = _noise(width, height, 3, seed=7)
    row = width * 3
    reversed_rows = b"".join(
        pixels[r * row:(r + 1) * row] for r in range(height - 1, -1, -1)
    )
    assert encode_jpeg(pixels, width, height, 3, quality, flip=True) == encode_jpeg(
        reversed_rows, width, height, 3, quality
    )


def test_alpha_is_ignored():
    width, height = 12, 10
    rgb = _noise(width, height, 3, seed=3)
    rgba = b"".join(
        rgb[k * 3:k * 3 + 3] + bytes((k % 256,)) for k in range(width * height)
    )
    assert encode_jpeg(rgba, width, height, 4) == encode_jpeg(rgb, width, height, 3)


def test_grey_alpha_matches_grey():
    width, height = 9, 9
    grey = _noise(width, height, 1, seed=5)
    grey_alpha = b"".join(bytes((g, 200)) for g in grey)
    assert encode_jpeg(grey_alpha, width, height, 2) == encode_jpeg(grey, width, height, 1)


def test_grey_matches_equal_rgb():
    width, height = 10, 6
    grey = _noise(width, height, 1, seed=9)
    rgb = b"".join(bytes((g, g, g)) for g in grey)
    assert encode_jpeg(rgb, width, height, 3) == encode_jpeg(grey, width, height, 1)


def test_entropy_data_is_byte_stuffed():
    encoded = encode_jpeg(_noise(40, 40, 3, seed=11), 40, 40, 3, 100)
    start = encoded.index(b"\xff\xda") + 14
    scan = encoded[start:-2]
    stuffed = [i for i, byte in enumerate(scan) if byte == 0xFF]
    assert stuffed
    assert all(i + 1 < len(scan) and scan[i + 1] == 0 for i in stuffed)


def test_encoding_depends_only_on_pixel_values():
    pixels = _gradient(23, 19)
    from_bytes = encode_jpeg(pixels, 23, 19, 3, 75)
    from_bytearray = encode_jpeg(bytearray(pixels), 23, 19, 3, 75)
    assert from_bytes == from_bytearray
    assert from_bytes[:2] == b"\xff\xd8"
    assert from_bytes[-2:] == b"\xff\xd9"
    assert _sof(from_bytes)[5:9] == b"\x00\x13\x00\x17"


@pytest.mark.parametrize("channels", [0, 5])
def test_rejects_bad_channel_count(channels):
    with pytest.raises(ImageWriteError):
        encode_jpeg(bytes(64 * 5), 8, 8, channels)


@pytest.mark.parametrize("width, height", [(0, 8), (8, 0), (-1, 8)])
def test_rejects_bad_dimensions(width, height):
    with pytest.raises(ImageWriteError):
        encode_jpeg(bytes(256), width, height, 3)


def test_rejects_short_data():
    with pytest.raises(ImageWriteError):
        encode_jpeg(bytes(10), 8, 8, 3)


def test_write_jpeg_writes_encoded_bytes(tmp_path):
    pixels = _gradient(16, 16)
    target = tmp_path / "out.jpg"
    write_jpeg(target, pixels, 16, 16, 3, 80)
    assert target.read_bytes() == encode_jpeg(pixels, 16, 16, 3, 80)