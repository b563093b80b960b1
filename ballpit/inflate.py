"""Decompression of DEFLATE and zlib streams, as used by PNG image data."""

from __future__ import annotations

from functools import lru_cache
from typing import Iterable, List, Tuple

_UNFILLED = 32767

_LENGTH_BASE = (
    3, 4, 5, 6, 7, 8, 9, 10, 11, 13, 15, 17, 19, 23, 27, 31,
    35, 43, 51, 59, 67, 83, 99, 115, 131, 163, 195, 227, 258,
)
_LENGTH_EXTRA = (
    0, 0, 0, 0, 0, 0, 0, 0, 1, 1, 1, 1, 2, 2, 2, 2,
    3, 3, 3, 3, 4, 4, 4, 4, 5, 5, 5, 5, 0,
)
_DIST_BASE = (
    1, 2, 3, 4, 5, 7, 9, 13, 17, 25, 33, 49, 65, 97, 129, 193,
    257, 385, 513, 769, 1025, 1537, 2049, 3073, 4097, 6145, 8193,
    12289, 16385, 24577,
)
_DIST_EXTRA = (
    0, 0, 0, 0, 1, 1, 2, 2, 3, 3, 4, 4, 5, 5, 6, 6,
    7, 7, 8, 8, 9, 9, 10, 10, 11, 11, 12, 12, 13, 13,
)
# Order in which code length code lengths are stored in a dynamic block header.
_CODE_LENGTH_ORDER = (16, 17, 18, 0, 8, 7, 9, 6, 10, 5, 11, 4, 12, 3, 13, 2, 14, 1, 15)

_END_OF_BLOCK = 256


class InflateError(ValueError):
    """Raised when a compressed stream is malformed; ``code`` identifies the failure."""

    def __init__(self, code: int, message: str) -> None:
        super().__init__(f"inflate error {code}: {message}")
        self.code = code


class HuffmanTree:
    """A Huffman decoding tree built from canonical code lengths."""

    def __init__(self, lengths: Iterable[int], max_bit_length: int) -> None:
        lengths = list(lengths)
        num_codes = len(lengths)
        for length in lengths:
            if not 0 <= length <= max_bit_length:
                raise ValueError(f"code length {length} outside 0..{max_bit_length}")

        bl_count = [0] * (max_bit_length + 1)
        for length in lengths:
            bl_count[length] += 1
        next_code = [0] * (max_bit_length + 1)
        for bits in range(1, max_bit_length + 1):
            next_code[bits] = (next_code[bits - 1] + bl_count[bits - 1]) << 1

        codes = [0] * num_codes
        for symbol, length in enumerate(lengths):
            if length:
                codes[symbol] = next_code[length]
                next_code[length] += 1

        tree = [_UNFILLED] * (2 * num_codes)
        tree_pos = 0
        nodes_filled = 0
        for symbol, length in enumerate(lengths):
            for i in range(length):
                bit = (codes[symbol] >> (length - i - 1)) & 1
                if (
                    tree_pos < 0
                    or 2 * tree_pos + 1 >= len(tree)
                    or (num_codes >= 2 and tree_pos > num_codes - 2)
                ):
                    raise InflateError(55, "invalid code lengths: tree overflow")
                slot = 2 * tree_pos + bit
                if tree[slot] == _UNFILLED:
                    if i + 1 == length:
                        tree[slot] = symbol
                        tree_pos = 0
                    else:
                        nodes_filled += 1
                        tree[slot] = nodes_filled + num_codes
                        tree_pos = nodes_filled
                else:
                    tree_pos = tree[slot] - num_codes

        self.num_codes = num_codes
        self._tree = tree

    def decode(self, tree_pos: int, bit: int) -> Tuple[bool, int, int]:
        """Follow one bit from ``tree_pos``.

        Returns ``(decoded, value, next_pos)``: when ``decoded`` is true ``value``
        is the symbol and ``next_pos`` is 0, otherwise ``next_pos`` is the inner
        node to continue from.
        """
        if tree_pos >= self.num_codes:
            raise InflateError(11, "decoding walked outside the code tree")
        result = self._tree[2 * tree_pos + bit]
        decoded = result < self.num_codes
        return decoded, result, 0 if decoded else result - self.num_codes


@lru_cache(maxsize=1)
def _fixed_trees() -> Tuple[HuffmanTree, HuffmanTree]:
    lengths = [8] * 144 + [9] * 112 + [7] * 24 + [8] * 8
    return HuffmanTree(lengths, 15), HuffmanTree([5] * 32, 15)


class _Inflater:
    def __init__(self, data: bytes) -> None:
        self.data = data
        self.length = len(data)
        self.bit_pos = 0
        self.out = bytearray()

    def read_bit(self) -> int:
        index = self.bit_pos >> 3
        if index >= self.length:
            raise InflateError(52, "bit pointer past the end of the input")
        bit = (self.data[index] >> (self.bit_pos & 7)) & 1
        self.bit_pos += 1
        return bit

    def read_bits(self, count: int) -> int:
        result = 0
        for i in range(count):
            result |= self.read_bit() << i
        return result

    def run(self) -> bytes:
        final = False
        while not final:
            if self.bit_pos >> 3 >= self.length:
                raise InflateError(52, "bit pointer past the end of the input")
            final = bool(self.read_bit())
            block_type = self.read_bit() + 2 * self.read_bit()
            if block_type == 3:
                raise InflateError(20, "invalid block type")
            if block_type == 0:
                self._stored_block()
            else:
                self._huffman_block(block_type)
        return bytes(self.out)

    def _decode_symbol(self, tree: HuffmanTree) -> int:
        tree_pos = 0
        while True:
            if self.bit_pos >> 3 >= self.length:
                raise InflateError(10, "end of input reached without end code")
            decoded, value, tree_pos = tree.decode(tree_pos, self.read_bit())
            if decoded:
                return value

    def _dynamic_trees(self) -> Tuple[HuffmanTree, HuffmanTree]:
        if self.bit_pos >> 3 >= self.length:
            raise InflateError(49, "dynamic block header past the end of the input")
        hlit = self.read_bits(5) + 257
        hdist = self.read_bits(5) + 1
        hclen = self.read_bits(4) + 4

        code_length_lengths = [0] * 19
        for i, symbol in enumerate(_CODE_LENGTH_ORDER):
            code_length_lengths[symbol] = self.read_bits(3) if i < hclen else 0
        code_length_tree = HuffmanTree(code_length_lengths, 7)

        total = hlit + hdist
        lengths: List[int] = []
        while len(lengths) < total:
            code = self._decode_symbol(code_length_tree)
            if code <= 15:
                lengths.append(code)
                continue
            if self.bit_pos >> 3 >= self.length:
                raise InflateError(50, "bit pointer past the end of the input")
            if code == 16:
                if not lengths:
                    raise InflateError(54, "repeat code with no previous length")
                repeat, value, overflow = 3 + self.read_bits(2), lengths[-1], 13
            elif code == 17:
                repeat, value, overflow = 3 + self.read_bits(3), 0, 14
            elif code == 18:
                repeat, value, overflow = 11 + self.read_bits(7), 0, 15
            else:
                raise InflateError(16, "invalid code length code")
            if len(lengths) + repeat > total:
                raise InflateError(overflow, "repeated lengths exceed the number of codes")
            lengths.extend([value] * repeat)

        literal_lengths = lengths[:hlit] + [0] * (288 - hlit)
        distance_lengths = lengths[hlit:] + [0] * (32 - hdist)
        if literal_lengths[_END_OF_BLOCK] == 0:
            raise InflateError(64, "end-of-block code has zero length")
        return HuffmanTree(literal_lengths, 15), HuffmanTree(distance_lengths, 15)

    def _huffman_block(self, block_type: int) -> None:
        if block_type == 1:
            literal_tree, distance_tree = _fixed_trees()
        else:
            literal_tree, distance_tree = self._dynamic_trees()
        out = self.out
        while True:
            code = self._decode_symbol(literal_tree)
            if code == _END_OF_BLOCK:
                return
            if code < _END_OF_BLOCK:
                out.append(code)
            elif 257 <= code <= 285:
                index = code - 257
                if self.bit_pos >> 3 >= self.length:
                    raise InflateError(51, "bit pointer past the end of the input")
                length = _LENGTH_BASE[index] + self.read_bits(_LENGTH_EXTRA[index])
                dist_code = self._decode_symbol(distance_tree)
                if dist_code > 29:
                    raise InflateError(18, "invalid distance code")
                if self.bit_pos >> 3 >= self.length:
                    raise InflateError(51, "bit pointer past the end of the input")
                distance = _DIST_BASE[dist_code] + self.read_bits(_DIST_EXTRA[dist_code])
                if distance > len(out):
                    raise InflateError(52, "back reference before the start of the output")
                for _ in range(length):
                    out.append(out[-distance])

    def _stored_block(self) -> None:
        self.bit_pos = (self.bit_pos + 7) & ~7
        p = self.bit_pos >> 3
        if p + 4 > self.length:
            raise InflateError(52, "stored block header past the end of the input")
        data = self.data
        size = data[p] + 256 * data[p + 1]
        inverse = data[p + 2] + 256 * data[p + 3]
        p += 4
        if size + inverse != 65535:
            raise InflateError(21, "stored block length check failed")
        if p + size > self.length:
            raise InflateError(23, "stored block reads outside the input")
        self.out += data[p:p + size]
        self.bit_pos = (p + size) * 8


def inflate(data: bytes) -> bytes:
    """Decompress a raw DEFLATE stream."""
    return _Inflater(bytes(data)).run()


def zlib_decompress(data: bytes) -> bytes:
    """Decompress a zlib stream; the Adler-32 checksum is not verified."""
    data = bytes(data)
    if len(data) < 2:
        raise InflateError(53, "zlib data too small")
    if (data[0] * 256 + data[1]) % 31 != 0:
        raise InflateError(24, "zlib header check value is wrong")
    method = data[0] & 15
    window_info = (data[0] >> 4) & 15
    preset_dict = (data[1] >> 5) & 1
    if method != 8 or window_info > 7:
        raise InflateError(25, "unsupported compression method")
    if preset_dict:
        raise InflateError(26, "preset dictionaries are not allowed")
    return inflate(data[2:])