"""A small zlib-format compressor using fixed Huffman codes and hashed LZ77."""

from __future__ import annotations

_HASH_SIZE = 16384
_MASK32 = 0xFFFFFFFF
_MAX_MATCH = 258
_ADLER_MOD = 65521
_ADLER_BLOCK = 5552

_LENGTH_BASE = (
    3, 4, 5, 6, 7, 8, 9, 10, 11, 13, 15, 17, 19, 23, 27, 31, 35, 43, 51, 59,
    67, 83, 99, 115, 131, 163, 195, 227, 258, 259,
)
_LENGTH_EXTRA = (
    0, 0, 0, 0, 0, 0, 0, 0, 1, 1, 1, 1, 2, 2, 2, 2, 3, 3, 3, 3,
    4, 4, 4, 4, 5, 5, 5, 5, 0,
)
_DIST_BASE = (
    1, 2, 3, 4, 5, 7, 9, 13, 17, 25, 33, 49, 65, 97, 129, 193, 257, 385, 513,
    769, 1025, 1537, 2049, 3073, 4097, 6145, 8193, 12289, 16385, 24577, 32768,
)
_DIST_EXTRA = (
    0, 0, 0, 0, 1, 1, 2, 2, 3, 3, 4, 4, 5, 5, 6, 6, 7, 7, 8, 8,
    9, 9, 10, 10, 11, 11, 12, 12, 13, 13,
)


def adler32(data: bytes) -> int:
    """Adler-32 checksum of ``data``."""
    s1, s2 = 1, 0
    view = memoryview(bytes(data))
    for start in range(0, len(view), _ADLER_BLOCK):
        for byte in view[start:start + _ADLER_BLOCK]:
            s1 += byte
            s2 += s1
        s1 %= _ADLER_MOD
        s2 %= _ADLER_MOD
    return (s2 << 16) | s1


def _bit_reverse(code: int, bits: int) -> int:
    result = 0
    for _ in range(bits):
        result = (result << 1) | (code & 1)
        code >>= 1
    return result


def _hash3(data: bytes, pos: int) -> int:
    h = data[pos] + (data[pos + 1] << 8) + (data[pos + 2] << 16)
    h ^= (h << 3) & _MASK32
    h = (h + (h >> 5)) & _MASK32
    h ^= (h << 4) & _MASK32
    h = (h + (h >> 17)) & _MASK32
    h ^= (h << 25) & _MASK32
    h = (h + (h >> 6)) & _MASK32
    return h & (_HASH_SIZE - 1)


def _match_length(data: bytes, a: int, b: int, limit: int) -> int:
    limit = min(limit, _MAX_MATCH)
    length = 0
    while length < limit and data[a + length] == data[b + length]:
        length += 1
    return length


class _BitWriter:
    """Accumulates LSB-first bit fields into a byte array."""

    def __init__(self, out: bytearray) -> None:
        self.out = out
        self.buffer = 0
        self.count = 0

    def add(self, code: int, bits: int) -> None:
        self.buffer |= code << self.count
        self.count += bits
        while self.count >= 8:
            self.out.append(self.buffer & 0xFF)
            self.buffer >>= 8
            self.count -= 8

    def huffman(self, code: int, bits: int) -> None:
        self.add(_bit_reverse(code, bits), bits)

    def symbol(self, n: int) -> None:
        """Emit literal/length symbol ``n`` with the fixed Huffman table."""
        if n <= 143:
            self.huffman(0x30 + n, 8)
        elif n <= 255:
            self.huffman(0x190 + n - 144, 9)
        elif n <= 279:
            self.huffman(n - 256, 7)
        else:
            self.huffman(0xC0 + n - 280, 8)

    def pad_to_byte(self) -> None:
        while self.count:
            self.add(0, 1)


def zlib_compress(data: bytes, quality: int = 8) -> bytes:
    """Compress ``data`` into a zlib stream.

    ``quality`` bounds how many candidate positions are kept per hash bucket;
    values below 5 are treated as 5.
    """
    data = bytes(data)
    size = len(data)
    quality = max(quality, 5)

    out = bytearray(b"\x78\x5e")
    bits = _BitWriter(out)
    bits.add(1, 1)  # final block
    bits.add(1, 2)  # fixed Huffman codes

    table: dict[int, list[int]] = {}
    i = 0
    while i < size - 3:
        h = _hash3(data, i)
        best = 3
        best_pos: int | None = None
        for pos in table.get(h, ()):
            if pos > i - 32768:
                length = _match_length(data, pos, i, size - i)
                if length >= best:
                    best = length
                    best_pos = pos

        bucket = table.setdefault(h, [])
        if len(bucket) == 2 * quality:
            del bucket[:quality]
        bucket.append(i)

        if best_pos is not None:
            # Lazy matching: prefer a literal if the next position matches longer.
            for pos in table.get(_hash3(data, i + 1), ()):
                if pos > i - 32767:
                    if _match_length(data, pos, i + 1, size - i - 1) > best:
                        best_pos = None
                        break

        if best_pos is not None:
            distance = i - best_pos
            j = 0
            while best > _LENGTH_BASE[j + 1] - 1:
                j += 1
            bits.symbol(j + 257)
            if _LENGTH_EXTRA[j]:
                bits.add(best - _LENGTH_BASE[j], _LENGTH_EXTRA[j])
            j = 0
            while distance > _DIST_BASE[j + 1] - 1:
                j += 1
            bits.add(_bit_reverse(j, 5), 5)
            if _DIST_EXTRA[j]:
                bits.add(distance - _DIST_BASE[j], _DIST_EXTRA[j])
            i += best
        else:
            bits.symbol(data[i])
            i += 1

    for byte in data[i:]:
        bits.symbol(byte)
    bits.symbol(256)
    bits.pad_to_byte()

    out += adler32(data).to_bytes(4, "big")
    return bytes(out)