"""Decoding PNG images into raw pixel data."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ballpit.inflate import InflateError, zlib_decompress

_SIGNATURE = b"\x89PNG\r\n\x1a\n"
_HEADER_LENGTH = 29
_FIRST_CHUNK = 33
_MAX_CHUNK_LENGTH = 2147483647
_MAX_PALETTE_ENTRIES = 256

# (left, top, step x, step y) of the seven Adam7 passes.
_ADAM7_PASSES = (
    (0, 0, 8, 8),
    (4, 0, 8, 8),
    (0, 4, 4, 8),
    (2, 0, 4, 4),
    (0, 2, 2, 4),
    (1, 0, 2, 2),
    (0, 1, 1, 2),
)

_ALLOWED_DEPTHS = {
    0: (1, 2, 4, 8, 16),
    2: (8, 16),
    3: (1, 2, 4, 8),
    4: (8, 16),
    6: (8, 16),
}


class PNGError(ValueError):
    """Raised when PNG data cannot be decoded; ``code`` identifies the failure."""

    def __init__(self, code: Optional[int], message: str) -> None:
        prefix = f"PNG error {code}" if code is not None else "PNG error"
        super().__init__(f"{prefix}: {message}")
        self.code = code


@dataclass
class PNGInfo:
    """Header fields and colour information read from a PNG file."""

    width: int
    height: int
    bit_depth: int
    color_type: int
    compression_method: int = 0
    filter_method: int = 0
    interlace_method: int = 0
    key: Optional[Tuple[int, int, int]] = None
    palette: bytearray = field(default_factory=bytearray)

    @property
    def key_defined(self) -> bool:
        """True if a transparent colour key was given."""
        return self.key is not None

    @property
    def bits_per_pixel(self) -> int:
        if self.color_type == 2:
            return 3 * self.bit_depth
        if self.color_type >= 4:
            return (self.color_type - 2) * self.bit_depth
        return self.bit_depth


@dataclass
class DecodedImage:
    """Decoded pixel data with its dimensions and the file's header information."""

    width: int
    height: int
    pixels: bytes
    info: PNGInfo


def check_color_validity(color_type: int, bit_depth: int) -> None:
    """Raise PNGError unless the colour type and bit depth form a legal pair."""
    allowed = _ALLOWED_DEPTHS.get(color_type)
    if allowed is None:
        raise PNGError(31, f"unknown colour type {color_type}")
    if bit_depth not in allowed:
        raise PNGError(37, f"bit depth {bit_depth} not allowed for colour type {color_type}")


def paeth_predictor(a: int, b: int, c: int) -> int:
    """The Paeth predictor used by PNG filter type 4."""
    p = a + b - c
    pa, pb, pc = abs(p - a), abs(p - b), abs(p - c)
    if pa <= pb and pa <= pc:
        return a
    return b if pb <= pc else c


def _read_u32(data: bytes, pos: int) -> int:
    return struct.unpack_from(">I", data, pos)[0]


def _read_header(data: bytes) -> PNGInfo:
    if len(data) < _HEADER_LENGTH:
        raise PNGError(27, "data is shorter than the PNG header")
    if data[:8] != _SIGNATURE:
        raise PNGError(28, "missing PNG signature")
    if data[12:16] != b"IHDR":
        raise PNGError(29, "first chunk is not IHDR")
    width, height = struct.unpack_from(">II", data, 16)
    info = PNGInfo(
        width=width,
        height=height,
        bit_depth=data[24],
        color_type=data[25],
        compression_method=data[26],
        filter_method=data[27],
        interlace_method=data[28],
    )
    if info.compression_method != 0:
        raise PNGError(32, "unsupported compression method")
    if info.filter_method != 0:
        raise PNGError(33, "unsupported filter method")
    if info.interlace_method > 1:
        raise PNGError(34, "unsupported interlace method")
    check_color_validity(info.color_type, info.bit_depth)
    return info


def _read_transparency(info: PNGInfo, body: bytes) -> None:
    if info.color_type == 3:
        if 4 * len(body) > len(info.palette):
            raise PNGError(39, "more alpha values than palette entries")
        for index, alpha in enumerate(body):
            info.palette[4 * index + 3] = alpha
    elif info.color_type == 0:
        if len(body) != 2:
            raise PNGError(40, "tRNS chunk must be 2 bytes for greyscale images")
        grey = (body[0] << 8) | body[1]
        info.key = (grey, grey, grey)
    elif info.color_type == 2:
        if len(body) != 6:
            raise PNGError(41, "tRNS chunk must be 6 bytes for RGB images")
        r, g, b = struct.unpack(">HHH", body)
        info.key = (r, g, b)
    else:
        raise PNGError(42, "tRNS chunk not allowed for this colour type")


def _read_chunks(data: bytes, info: PNGInfo) -> bytes:
    """Walk the chunks after the header and return the joined IDAT data."""
    size = len(data)
    pos = _FIRST_CHUNK
    idat = bytearray()
    while True:
        if pos + 8 >= size:
            raise PNGError(30, "data too small to contain the next chunk")
        length = _read_u32(data, pos)
        pos += 4
        if length > _MAX_CHUNK_LENGTH:
            raise PNGError(63, "chunk length too large")
        if pos + 4 + length > size:
            raise PNGError(35, "data too small to contain the chunk")
        tag = data[pos:pos + 4]
        body = data[pos + 4:pos + 4 + length]
        if tag == b"IDAT":
            idat += body
        elif tag == b"IEND":
            break
        elif tag == b"PLTE":
            entries = length // 3
            if entries > _MAX_PALETTE_ENTRIES:
                raise PNGError(38, "palette too big")
            palette = bytearray()
            for index in range(entries):
                palette += body[3 * index:3 * index + 3]
                palette.append(255)
            info.palette = palette
        elif tag == b"tRNS":
            _read_transparency(info, body)
        elif not tag[0] & 32:
            raise PNGError(69, f"unknown critical chunk {tag!r}")
        pos += 4 + length + 4
    return bytes(idat)


def _unfilter(line: bytes, prev: Optional[bytes], byte_width: int, filter_type: int) -> bytearray:
    if filter_type == 0:
        return bytearray(line)
    if filter_type not in (1, 2, 3, 4):
        raise PNGError(36, f"unknown filter type {filter_type}")
    above = prev if prev is not None else bytes(len(line))
    recon = bytearray(len(line))
    for i, value in enumerate(line):
        left = recon[i - byte_width] if i >= byte_width else 0
        up = above[i]
        if filter_type == 1:
            predicted = left
        elif filter_type == 2:
            predicted = up
        elif filter_type == 3:
            predicted = (left + up) // 2
        else:
            up_left = above[i - byte_width] if i >= byte_width else 0
            predicted = paeth_predictor(left, up, up_left)
        recon[i] = (value + predicted) & 0xFF
    return recon


def _sample(data: bytes, index: int, bits: int) -> int:
    """Read the ``index``-th ``bits``-wide sample from a big-endian bit stream."""
    bit_pos = index * bits
    shift = 8 - bits - (bit_pos & 7)
    return (data[bit_pos >> 3] >> shift) & ((1 << bits) - 1)


def _put_sample(out: bytearray, bit_pos: int, bits: int, value: int) -> None:
    out[bit_pos >> 3] |= value << (8 - bits - (bit_pos & 7))


def _scanline(scanlines: bytes, start: int, length: int) -> Tuple[int, bytes]:
    end = start + 1 + length
    if end > len(scanlines):
        raise PNGError(None, "image data ends before the last scanline")
    return scanlines[start], scanlines[start + 1:end]


def _decode_plain(scanlines: bytes, info: PNGInfo, bpp: int) -> bytearray:
    width, height = info.width, info.height
    byte_width = (bpp + 7) // 8
    line_length = (width * bpp + 7) // 8
    prev: Optional[bytes] = None
    if bpp >= 8:
        out = bytearray()
        for y in range(height):
            filter_type, line = _scanline(scanlines, y * (1 + line_length), line_length)
            row = _unfilter(line, prev, byte_width, filter_type)
            out += row
            prev = bytes(row)
        return out

    out = bytearray((height * width * bpp + 7) // 8)
    for y in range(height):
        filter_type, line = _scanline(scanlines, y * (1 + line_length), line_length)
        row = _unfilter(line, prev, byte_width, filter_type)
        for x in range(width):
            _put_sample(out, (y * width + x) * bpp, bpp, _sample(row, x, bpp))
        prev = bytes(row)
    return out


def _decode_adam7(scanlines: bytes, info: PNGInfo, bpp: int) -> bytearray:
    width, height = info.width, info.height
    byte_width = (bpp + 7) // 8
    out = bytearray((height * width * bpp + 7) // 8)
    pass_start = 0
    for left, top, step_x, step_y in _ADAM7_PASSES:
        pass_w = max(0, (width - left + step_x - 1) // step_x)
        pass_h = max(0, (height - top + step_y - 1) // step_y)
        if pass_w == 0 or pass_h == 0:
            continue
        line_length = (pass_w * bpp + 7) // 8
        prev: Optional[bytes] = None
        for y in range(pass_h):
            filter_type, line = _scanline(
                scanlines, pass_start + y * (1 + line_length), line_length
            )
            row = _unfilter(line, prev, byte_width, filter_type)
            out_row = top + step_y * y
            for i in range(pass_w):
                pixel = out_row * width + left + step_x * i
                if bpp >= 8:
                    dest = byte_width * pixel
                    out[dest:dest + byte_width] = row[byte_width * i:byte_width * (i + 1)]
                else:
                    _put_sample(out, bpp * pixel, bpp, _sample(row, i, bpp))
            prev = bytes(row)
        pass_start += pass_h * (1 + line_length)
    return out


def _keyed_alpha(samples: List[Tuple[int, ...]], key: Optional[Tuple[int, ...]]) -> bytes:
    return bytes(0 if key is not None and sample == key else 255 for sample in samples)


def _palette_lookup(indices: List[int], palette: bytes, code: int) -> bytearray:
    out = bytearray()
    for index in indices:
        if 4 * index >= len(palette):
            raise PNGError(code, f"palette index {index} out of range")
        out += palette[4 * index:4 * index + 4]
    return out


def _to_rgba(raw: bytes, info: PNGInfo) -> bytearray:
    n = info.width * info.height
    depth, color_type, key = info.bit_depth, info.color_type, info.key
    out = bytearray(4 * n)

    if depth == 8:
        if color_type == 0:
            grey = raw[:n]
            out[0::4] = out[1::4] = out[2::4] = grey
            out[3::4] = _keyed_alpha([(v, v, v) for v in grey], key)
        elif color_type == 2:
            rgb = [raw[i:i + 3] for i in range(0, 3 * n, 3)]
            for channel in range(3):
                out[channel::4] = raw[channel:3 * n:3]
            out[3::4] = _keyed_alpha([tuple(p) for p in rgb], key)
        elif color_type == 3:
            out = _palette_lookup(list(raw[:n]), info.palette, 46)
        elif color_type == 4:
            out[0::4] = out[1::4] = out[2::4] = raw[0:2 * n:2]
            out[3::4] = raw[1:2 * n:2]
        else:
            out[:] = raw[:4 * n]
    elif depth == 16:
        if color_type == 0:
            out[0::4] = out[1::4] = out[2::4] = raw[0:2 * n:2]
            samples = [(raw[2 * i] << 8) | raw[2 * i + 1] for i in range(n)]
            out[3::4] = _keyed_alpha([(v, v, v) for v in samples], key)
        elif color_type == 2:
            for channel in range(3):
                out[channel::4] = raw[2 * channel:6 * n:6]
            pixels = [struct.unpack_from(">HHH", raw, 6 * i) for i in range(n)]
            out[3::4] = _keyed_alpha(pixels, key)
        elif color_type == 4:
            out[0::4] = out[1::4] = out[2::4] = raw[0:4 * n:4]
            out[3::4] = raw[2:4 * n:4]
        else:
            out[:] = raw[0:8 * n:2]
    elif color_type == 0:
        max_value = (1 << depth) - 1
        values = [_sample(raw, i, depth) for i in range(n)]
        out[0::4] = out[1::4] = out[2::4] = bytes(v * 255 // max_value for v in values)
        out[3::4] = _keyed_alpha([(v, v, v) for v in values], key)
    else:
        out = _palette_lookup([_sample(raw, i, depth) for i in range(n)], info.palette, 47)
    return out


def decode_png(data: bytes, convert_to_rgba32: bool = True) -> DecodedImage:
    """Decode an in-memory PNG file.

    With ``convert_to_rgba32`` the pixels are 8-bit RGBA whatever the source
    colour type; otherwise they keep the file's own sample layout.
    """
    data = bytes(data)
    if not data:
        raise PNGError(48, "the given data is empty")
    info = _read_header(data)
    idat = _read_chunks(data, info)
    try:
        scanlines = zlib_decompress(idat)
    except InflateError as exc:
        raise PNGError(exc.code, str(exc)) from exc

    bpp = info.bits_per_pixel
    if info.interlace_method == 0:
        raw = _decode_plain(scanlines, info, bpp)
    else:
        raw = _decode_adam7(scanlines, info, bpp)

    if convert_to_rgba32 and (info.color_type != 6 or info.bit_depth != 8):
        raw = _to_rgba(bytes(raw), info)
    return DecodedImage(info.width, info.height, bytes(raw), info)