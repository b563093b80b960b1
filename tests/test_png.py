import random
import struct
import zlib

import pytest

from ballpit.png import (
    DecodedImage,
    PNGError,
    check_color_validity,
    decode_png,
    paeth_predictor,
)

SIGNATURE = b"\x89PNG\r\n\x1a\n"

ADAM7 = (
    (0, 0, 8, 8),
    (4, 0, 8, 8),
    (0, 4, 4, 8),
    (2, 0, 4, 4),
    (0, 2, 2, 4),
    (1, 0, 2, 2),
    (0, 1, 1, 2),
)


def chunk(tag, payload):
    return (
        struct.pack(">I", len(payload))
        + tag
        + payload
        + struct.pack(">I", zlib.crc32(tag + payload) & 0xFFFFFFFF)
    )


def make_png(width, height, bit_depth, color_type, scanlines, interlace=0,
             before_idat=(), raw_idat=None, compression=0, filter_method=0):
    ihdr = struct.pack(">IIBBBBB", width, height, bit_depth, color_type,
                       compression, filter_method, interlace)
    idat = raw_idat if raw_idat is not None else zlib.compress(bytes(scanlines))
    return (
        SIGNATURE
        + chunk(b"IHDR", ihdr)
        + b"".join(chunk(tag, body) for tag, body in before_idat)
        + chunk(b"IDAT", idat)
        + chunk(b"IEND", b"")
    )


def pack(values, bits):
    out = bytearray()
    acc, used = 0, 0
    for v in values:
        acc = (acc << bits) | v
        used += bits
        if used == 8:
            out.append(acc)
            acc, used = 0, 0
    if used:
        out.append(acc << (8 - used))
    return bytes(out)


def filter_row(filter_type, row, prev, bw):
    out = bytearray([filter_type])
    for i, x in enumerate(row):
        a = row[i - bw] if i >= bw else 0
        b = prev[i]
        c = prev[i - bw] if i >= bw else 0
        pred = {0: 0, 1: a, 2: b, 3: (a + b) // 2, 4: paeth_predictor(a, b, c)}[filter_type]
        out.append((x - pred) & 0xFF)
    return bytes(out)


def unfiltered(rows):
    return b"".join(b"\x00" + row for row in rows)


def test_rgba8_round_trip():
    rows = [bytes([1, 2, 3, 4, 5, 6, 7, 8]), bytes([9, 10, 11, 12, 13, 14, 15, 16])]
    image = decode_png(make_png(2, 2, 8, 6, unfiltered(rows)))
    assert isinstance(image, DecodedImage)
    assert (image.width, image.height) == (2, 2)
    assert image.pixels == b"".join(rows)


def test_rgb8_gets_opaque_alpha():
    row = bytes([10, 20, 30, 40, 50, 60])
    image = decode_png(make_png(2, 1, 8, 2, unfiltered([row])))
    assert image.pixels == bytes([10, 20, 30, 255, 40, 50, 60, 255])


def test_rgb8_without_conversion_keeps_layout():
    row = bytes([10, 20, 30, 40, 50, 60])
    image = decode_png(make_png(2, 1, 8, 2, unfiltered([row])), convert_to_rgba32=False)
    assert image.pixels == row


def test_rgb8_colour_key_makes_pixel_transparent():
    row = bytes([10, 20, 30, 40, 50, 60])
    trns = struct.pack(">HHH", 40, 50, 60)
    image = decode_png(make_png(2, 1, 8, 2, unfiltered([row]), before_idat=[(b"tRNS", trns)]))
    assert image.pixels[3] == 255
    assert image.pixels[7] == 0
    assert image.info.key == (40, 50, 60)


def test_grey8_key_and_channels():
    row = bytes([7, 99])
    image = decode_png(make_png(2, 1, 8, 0, unfiltered([row]),
                                before_idat=[(b"tRNS", struct.pack(">H", 99))]))
    assert image.pixels == bytes([7, 7, 7, 255, 99, 99, 99, 0])


def test_grey_alpha8():
    row = bytes([5, 6, 200, 100])
    image = decode_png(make_png(2, 1, 8, 4, unfiltered([row])))
    assert image.pixels == bytes([5, 5, 5, 6, 200, 200, 200, 100])


def test_palette8_with_transparency():
    palette = bytes([10, 20, 30, 200, 100, 50])
    image = decode_png(make_png(2, 1, 8, 3, unfiltered([bytes([1, 0])]),
                                before_idat=[(b"PLTE", palette), (b"tRNS", bytes([128]))]))
    assert image.pixels == bytes([200, 100, 50, 255, 10, 20, 30, 128])


def test_palette1bit():
    palette = bytes([10, 20, 30, 200, 100, 50])
    image = decode_png(make_png(2, 1, 1, 3, unfiltered([pack([1, 0], 1)]),
                                before_idat=[(b"PLTE", palette)]))
    assert image.pixels == bytes([200, 100, 50, 255, 10, 20, 30, 255])


def test_palette_index_out_of_range():
    palette = bytes([10, 20, 30])
    data = make_png(2, 1, 8, 3, unfiltered([bytes([0, 5])]), before_idat=[(b"PLTE", palette)])
    with pytest.raises(PNGError) as exc_info:
        decode_png(data)
    assert exc_info.value.code == 46


def test_low_bit_palette_index_out_of_range():
    palette = bytes([10, 20, 30])
    data = make_png(2, 1, 2, 3, unfiltered([pack([0, 3], 2)]), before_idat=[(b"PLTE", palette)])
    with pytest.raises(PNGError) as exc_info:
        decode_png(data)
    assert exc_info.value.code == 47


def test_grey2bit_scaling_endpoints_and_order():
    image = decode_png(make_png(4, 1, 2, 0, unfiltered([pack([0, 1, 2, 3], 2)])))
    greys = list(image.pixels[0::4])
    assert greys[0] == 0
    assert greys[-1] == 255
    assert greys == sorted(set(greys))
    assert set(image.pixels[3::4]) == {255}


def test_low_bit_raw_output_is_packed_contiguously():
    rows = [pack([1, 0, 1], 1), pack([1, 1, 0], 1)]
    image = decode_png(make_png(3, 2, 1, 0, unfiltered(rows)), convert_to_rgba32=False)
    assert image.pixels == bytes([0xB8])


def test_rgb16_takes_most_significant_bytes():
    row = bytes([0x12, 0x34, 0x56, 0x78, 0x9A, 0xBC])
    image = decode_png(make_png(1, 1, 16, 2, unfiltered([row])))
    assert image.pixels == bytes([0x12, 0x56, 0x9A, 255])


def test_rgba16_takes_most_significant_bytes():
    row = bytes([1, 2, 3, 4, 5, 6, 7, 8])
    image = decode_png(make_png(1, 1, 16, 6, unfiltered([row])))
    assert image.pixels == bytes([1, 3, 5, 7])


def test_grey16_key():
    row = bytes([0xAB, 0xCD, 0x11, 0x22])
    image = decode_png(make_png(2, 1, 16, 0, unfiltered([row]),
                                before_idat=[(b"tRNS", bytes([0xAB, 0xCD]))]))
    assert image.pixels == bytes([0xAB, 0xAB, 0xAB, 0, 0x11, 0x11, 0x11, 255])


@pytest.mark.parametrize("filter_type", [0, 1, 2, 3, 4])
def test_filters_round_trip(filter_type):
    rng = random.Random(filter_type)
    width, height, bw = 5, 4, 4
    rows = [bytes(rng.randrange(256) for _ in range(width * bw)) for _ in range(height)]
    prev = bytes(width * bw)
    scanlines = bytearray()
    for row in rows:
        scanlines += filter_row(filter_type, row, prev, bw)
        prev = row
    image = decode_png(make_png(width, height, 8, 6, scanlines))
    assert image.pixels == b"".join(rows)


def test_unknown_filter_type():
    data = make_png(1, 1, 8, 6, b"\x07" + bytes(4))
    with pytest.raises(PNGError) as exc_info:
        decode_png(data)
    assert exc_info.value.code == 36


def adam7_scanlines(pixel_rows, width, height, encode_row):
    out = bytearray()
    for left, top, sx, sy in ADAM7:
        cols = range(left, width, sx)
        rows = range(top, height, sy)
        if not cols or not rows:
            continue
        for y in rows:
            out += b"\x00" + encode_row([pixel_rows[y][x] for x in cols])
    return bytes(out)


def test_adam7_rgb_matches_plain():
    rng = random.Random(7)
    width, height = 5, 7
    pixels = [[bytes(rng.randrange(256) for _ in range(3)) for _ in range(width)]
              for _ in range(height)]
    plain = unfiltered([b"".join(r) for r in pixels])
    interlaced = adam7_scanlines(pixels, width, height, b"".join)
    a = decode_png(make_png(width, height, 8, 2, plain))
    b = decode_png(make_png(width, height, 8, 2, interlaced, interlace=1))
    assert a.pixels == b.pixels
    assert b.info.interlace_method == 1


def test_adam7_one_bit_matches_plain():
    rng = random.Random(9)
    width, height = 9, 9
    pixels = [[rng.randrange(2) for _ in range(width)] for _ in range(height)]
    plain = unfiltered([pack(r, 1) for r in pixels])
    interlaced = adam7_scanlines(pixels, width, height, lambda vals: pack(vals, 1))
    a = decode_png(make_png(width, height, 1, 0, plain), convert_to_rgba32=False)
    b = decode_png(make_png(width, height, 1, 0, interlaced, interlace=1),
                   convert_to_rgba32=False)
    assert a.pixels == b.pixels


def test_ancillary_unknown_chunk_is_ignored():
    row = bytes([1, 2, 3, 4])
    data = make_png(1, 1, 8, 6, unfiltered([row]), before_idat=[(b"tEXt", b"note")])
    assert decode_png(data).pixels == row


def test_unknown_critical_chunk():
    data = make_png(1, 1, 8, 6, unfiltered([bytes(4)]), before_idat=[(b"ABCD", b"x")])
    with pytest.raises(PNGError) as exc_info:
        decode_png(data)
    assert exc_info.value.code == 69


@pytest.mark.parametrize(
    "data, code",
    [
        (b"", 48),
        (SIGNATURE + bytes(10), 27),
        (b"NOTAPNG!" + bytes(40), 28),
    ],
)
def test_header_errors(data, code):
    with pytest.raises(PNGError) as exc_info:
        decode_png(data)
    assert exc_info.value.code == code


def test_first_chunk_must_be_ihdr():
    data = bytearray(make_png(1, 1, 8, 6, unfiltered([bytes(4)])))
    data[12:16] = b"IHDX"
    with pytest.raises(PNGError) as exc_info:
        decode_png(bytes(data))
    assert exc_info.value.code == 29


@pytest.mark.parametrize(
    "kwargs, code",
    [
        ({"compression": 1}, 32),
        ({"filter_method": 1}, 33),
        ({"interlace": 2}, 34),
    ],
)
def test_header_field_errors(kwargs, code):
    with pytest.raises(PNGError) as exc_info:
        decode_png(make_png(1, 1, 8, 6, unfiltered([bytes(4)]), **kwargs))
    assert exc_info.value.code == code


@pytest.mark.parametrize(
    "color_type, bit_depth, code",
    [(1, 8, 31), (7, 8, 31), (2, 4, 37), (3, 16, 37), (0, 3, 37), (6, 1, 37)],
)
def test_check_color_validity_rejects(color_type, bit_depth, code):
    with pytest.raises(PNGError) as exc_info:
        check_color_validity(color_type, bit_depth)
    assert exc_info.value.code == code


def test_zlib_error_is_reported_as_png_error():
    data = make_png(1, 1, 8, 6, b"", raw_idat=b"\x78\x00")
    with pytest.raises(PNGError) as exc_info:
        decode_png(data)
    assert exc_info.value.code == 24


def test_truncated_image_data():
    data = make_png(4, 4, 8, 6, unfiltered([bytes(16)]))
    with pytest.raises(PNGError):
        decode_png(data)


def test_trns_for_greyscale_must_be_two_bytes():
    data = make_png(1, 1, 8, 0, unfiltered([bytes(1)]), before_idat=[(b"tRNS", b"\x00")])
    with pytest.raises(PNGError) as exc_info:
        decode_png(data)
    assert exc_info.value.code == 40


def test_trns_not_allowed_for_rgba():
    data = make_png(1, 1, 8, 6, unfiltered([bytes(4)]), before_idat=[(b"tRNS", b"\x00")])
    with pytest.raises(PNGError) as exc_info:
        decode_png(data)
    assert exc_info.value.code == 42


def test_trns_longer_than_palette():
    data = make_png(1, 1, 8, 3, unfiltered([bytes(1)]),
                    before_idat=[(b"PLTE", bytes(3)), (b"tRNS", bytes(2))])
    with pytest.raises(PNGError) as exc_info:
        decode_png(data)
    assert exc_info.value.code == 39


@pytest.mark.parametrize(
    "a, b, c, expected",
    [(10, 0, 0, 10), (0, 20, 0, 20), (5, 5, 5, 5), (0, 0, 30, 0)],
)
def test_paeth_predictor(a, b, c, expected):
    assert paeth_predictor(a, b, c) == expected


def test_paeth_predictor_returns_an_input():
    rng = random.Random(3)
    for _ in range(200):
        a, b, c = (rng.randrange(256) for _ in range(3))
        assert paeth_predictor(a, b, c) in (a, b, c)