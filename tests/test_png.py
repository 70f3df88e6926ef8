import zlib

import pytest

from rasterkit.png import ImageWriteError, crc32, encode_png, write_png


def _chunks(png):
    pos = 8
    result = []
    while pos < len(png):
        length = int.from_bytes(png[pos:pos + 4], "big")
        tag = png[pos + 4:pos + 8]
        payload = png[pos + 8:pos + 8 + length]
        crc = int.from_bytes(png[pos + 8 + length:pos + 12 + length], "big")
        result.append((tag, payload, crc))
        pos += 12 + length
    return result


def _paeth(a, b, c):
    p = a + b - c
    pa, pb, pc = abs(p - a), abs(p - b), abs(p - c)
    if pa <= pb and pa <= pc:
        return a
    if pb <= pc:
        return b
    return c


def _decode(png, channels):
    chunks = _chunks(png)
    header = chunks[0][1]
    width = int.from_bytes(header[0:4], "big")
    height = int.from_bytes(header[4:8], "big")
    raw = zlib.decompress(b"".join(p for t, p, _ in chunks if t == b"IDAT"))
    row_bytes = width * channels
    prior = bytearray(row_bytes)
    out = bytearray()
    filters = []
    for r in range(height):
        start = r * (row_bytes + 1)
        ftype = raw[start]
        filters.append(ftype)
        line = bytearray(raw[start + 1:start + 1 + row_bytes])
        for i in range(row_bytes):
            left = line[i - channels] if i >= channels else 0
            up = prior[i]
            ul = prior[i - channels] if i >= channels else 0
            pred = [0, left, up, (left + up) >> 1, _paeth(left, up, ul)][ftype]
            line[i] = (line[i] + pred) & 0xFF
        out += line
        prior = line
    return width, height, bytes(out), filters


def _sample(width, height, channels):
    return bytes((x * 37 + y * 11 + c * 53) % 256
                 for y in range(height) for x in range(width) for c in range(channels))


def test_crc32_matches_zlib():
    for data in (b"", b"IEND", b"123456789", bytes(range(256))):
        assert crc32(data) == zlib.crc32(data)


def test_signature_and_end_chunk():
    png = encode_png(bytes(4), 1, 1, 4)
    assert png[:8] == bytes((137, 80, 78, 71, 13, 10, 26, 10))
    assert png[-12:] == b"\x00\x00\x00\x00IEND\xaeB`\x82"


@pytest.mark.parametrize("channels,color_type", [(1, 0), (2, 4), (3, 2), (4, 6)])
def test_header_fields(channels, color_type):
    png = encode_png(_sample(5, 3, channels), 5, 3, channels)
    tag, header, crc = _chunks(png)[0]
    assert tag == b"IHDR"
    assert header == (5).to_bytes(4, "big") + (3).to_bytes(4, "big") + bytes((8, color_type, 0, 0, 0))
    assert crc == zlib.crc32(b"IHDR" + header)


def test_all_chunk_crcs_valid():
    png = encode_png(_sample(7, 6, 3), 7, 6, 3)
    for tag, payload, crc in _chunks(png):
        assert crc == zlib.crc32(tag + payload)


@pytest.mark.parametrize("channels", [1, 2, 3, 4])
@pytest.mark.parametrize("force_filter", [-1, 0, 1, 2, 3, 4])
def test_round_trip(channels, force_filter):
    data = _sample(9, 5, channels)
    png = encode_png(data, 9, 5, channels, force_filter=force_filter)
    width, height, decoded, filters = _decode(png, channels)
    assert (width, height) == (9, 5)
    assert decoded == data
    if force_filter >= 0:
        assert filters == [force_filter] * 5


def test_out_of_range_filter_means_adaptive():
    data = _sample(6, 4, 3)
    assert encode_png(data, 6, 4, 3, force_filter=7) == encode_png(data, 6, 4, 3)


def test_flip_reverses_rows():
    data = _sample(4, 3, 3)
    png = encode_png(data, 4, 3, 3, flip=True)
    _, _, decoded, _ = _decode(png, 3)
    rows = [data[r * 12:(r + 1) * 12] for r in range(3)]
    assert decoded == b"".join(reversed(rows))


def test_stride_skips_padding():
    width, height, channels = 3, 4, 3
    rows = [_sample(width, height, channels)[r * 9:(r + 1) * 9] for r in range(height)]
    padded = b"".join(row + b"\xee\xee\xee" for row in rows)
    png = encode_png(padded, width, height, channels, stride=12)
    _, _, decoded, _ = _decode(png, channels)
    assert decoded == b"".join(rows)


def test_uniform_image_uses_cheap_filter():
    data = bytes([200, 10, 30]) * 16
    png = encode_png(data, 4, 4, 3)
    _, _, decoded, filters = _decode(png, 3)
    assert decoded == data
    assert all(f != 0 for f in filters[1:])


def test_bad_channel_count():
    with pytest.raises(ImageWriteError):
        encode_png(bytes(10), 2, 1, 5)


def test_short_data():
    with pytest.raises(ImageWriteError):
        encode_png(bytes(5), 2, 2, 3)


def test_negative_size():
    with pytest.raises(ImageWriteError):
        encode_png(b"", -1, 1, 3)


def test_write_png(tmp_path):
    data = _sample(5, 5, 4)
    path = tmp_path / "out.png"
    write_png(path, data, 5, 5, 4)
    assert path.read_bytes() == encode_png(data, 5, 5, 4)