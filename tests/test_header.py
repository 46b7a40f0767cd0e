import io
import random
import struct

import pytest

from byte_utils import (
    HEADER_SIZE, FULL_HEADER_SIZE, OFF_MSDOS_MAGIC, OFF_ZIMG_MAGIC, OFF_LINUX_MAGIC,
    OFF_RESERVED0, OFF_RESERVED1, pack_u32,
)
from header_utils import ZbootHeader, build_header, parse_header, format_report
from reader import read_header, inspect_image
from zboot_errors import TruncatedHeader, NotAZbootImage, ParseError

U32_SAMPLES = [0, 1, 60, 0x100, 0x12345678, 0x7FFFFFFF, 0x80000000, 0xFFFFFFFF]


def test_header_layout():
    raw = build_header(60, 4, 'gzip')
    assert len(raw) == HEADER_SIZE
    assert raw[0:2] == b'MZ'
    assert raw[4:8] == b'zimg'
    assert raw[8:12] == b'\x3c\x00\x00\x00'
    assert raw[12:16] == b'\x04\x00\x00\x00'
    assert raw[24:29] == b'gzip\x00'
    assert raw[56:60] == b'\xcd\x23\x82\x81'

    assert len(build_header(60, 4, 'gzip', pe_header_offset=0x40)) == FULL_HEADER_SIZE


@pytest.mark.parametrize("value", U32_SAMPLES)
def test_integers_decoded_little_endian(value):
    raw = build_header(value, value, 'zstd22', pe_header_offset=value)
    # wire form is independent of host order
    assert raw[8:12] == value.to_bytes(4, 'little')

    header = parse_header(raw)
    assert header.payload_offset == value
    assert header.payload_size == value
    assert header.pe_header_offset == value


def test_random_integers():
    rng = random.Random(1234)
    for _ in range(200):
        off, size, pe = (rng.getrandbits(32) for _ in range(3))
        header = parse_header(build_header(off, size, 'lz4', pe_header_offset=pe))
        assert (header.payload_offset, header.payload_size, header.pe_header_offset) == (off, size, pe)


def test_reserved_fields_ignored():
    raw = bytearray(build_header(100, 200, 'gzip'))
    assert raw[OFF_RESERVED0:OFF_RESERVED0 + 2] == b'\x00\x00'
    assert raw[OFF_RESERVED1:OFF_RESERVED1 + 8] == b'\x00' * 8
    raw[OFF_RESERVED0:OFF_RESERVED0 + 2] = b'\xff\xff'
    raw[OFF_RESERVED1:OFF_RESERVED1 + 8] = b'\xaa' * 8
    header = parse_header(bytes(raw))
    assert header.payload_offset == 100
    assert header.payload_size == 200


def test_pe_header_offset_optional():
    header = parse_header(build_header(60, 4, 'gzip'))
    assert header.pe_header_offset is None
    # a partial trailing field is not decoded either
    header = parse_header(build_header(60, 4, 'gzip') + b'\x01\x02')
    assert header.pe_header_offset is None


def test_compression_label_stops_at_nul():
    raw = bytearray(build_header(60, 4, 'gzip'))
    # junk after the terminator is padding
    raw[24 + 5:24 + 32] = b'X' * 27
    assert parse_header(bytes(raw)).compression_type == 'gzip'


def test_compression_label_full_width():
    label = 'a' * 32
    header = parse_header(build_header(60, 4, label))
    assert header.compression_type == label


def test_compression_label_empty():
    assert parse_header(build_header(60, 4, '')).compression_type == ''


def test_compression_label_too_long():
    with pytest.raises(ValueError):
        build_header(60, 4, 'x' * 33)


@pytest.mark.parametrize("length", range(HEADER_SIZE))
def test_truncated_header(length):
    raw = build_header(60, 4, 'gzip')[:length]
    with pytest.raises(TruncatedHeader):
        parse_header(raw)
    with pytest.raises(TruncatedHeader):
        read_header(io.BytesIO(raw))


def test_truncated_is_parse_error():
    with pytest.raises(ParseError):
        parse_header(b'MZ')
    with pytest.raises(EOFError):
        parse_header(b'')


@pytest.mark.parametrize("start,size,field", [
    (OFF_MSDOS_MAGIC, 2, 'msdos_magic'),
    (OFF_ZIMG_MAGIC, 4, 'zimg_magic'),
    (OFF_LINUX_MAGIC, 4, 'linux_magic'),
])
def test_single_byte_magic_corruption(start, size, field):
    good = build_header(60, 4, 'gzip')
    for i in range(start, start + size):
        raw = bytearray(good)
        raw[i] ^= 0x01
        with pytest.raises(NotAZbootImage) as excinfo:
            parse_header(bytes(raw))
        assert excinfo.value.mismatched == (field,)


def test_all_magic_mismatches_reported():
    with pytest.raises(NotAZbootImage) as excinfo:
        parse_header(b'\x00' * FULL_HEADER_SIZE)
    assert excinfo.value.mismatched == ('msdos_magic', 'zimg_magic', 'linux_magic')


def test_payload_range_not_checked():
    # offset/size far past the end of the image still parse
    header = parse_header(build_header(0xFFFFFFF0, 0xFFFFFFFF, 'gzip'))
    assert header.payload_end == 0xFFFFFFF0 + 0xFFFFFFFF


def test_read_header_advances_cursor():
    image = build_header(64, 3, 'gzip', pe_header_offset=0x40) + b'abc'
    f = io.BytesIO(image)
    header = read_header(f)
    assert header == ZbootHeader(64, 3, 'gzip', 0x40)
    assert f.read() == b'abc'


def test_header_is_immutable():
    header = parse_header(build_header(60, 4, 'gzip'))
    with pytest.raises(AttributeError):
        header.payload_size = 5


def test_gzip_image_header(tmp_path):
    image = build_header(60, 4, 'gzip') + bytes([0xAA, 0xBB, 0xCC, 0xDD])
    path = tmp_path / "Image.efi"
    path.write_bytes(image)

    header = inspect_image(str(path))
    assert header.compression_type == 'gzip'
    assert header.payload_offset == 60
    assert header.payload_size == 4


def test_mx_magic_rejected():
    image = bytearray(build_header(60, 4, 'gzip') + bytes([0xAA, 0xBB, 0xCC, 0xDD]))
    image[0:2] = b'MX'
    with pytest.raises(NotAZbootImage):
        read_header(io.BytesIO(bytes(image)))


def test_format_report():
    header = ZbootHeader(payload_offset=60, payload_size=4, compression_type='gzip')
    assert format_report(header) == (
        "Compression:    gzip\n"
        "Payload offset: 60 Bytes\n"
        "Payload size:   4 Bytes"
    )


def test_pack_u32_bounds():
    assert pack_u32(0x12345678) == b'\x78\x56\x34\x12'
    with pytest.raises(struct.error):
        pack_u32(1 << 32)
