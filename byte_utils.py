# byte_utils.py
"""
Binary packing/unpacking helpers for the EFI zboot image format.

Endianness: all multi-byte values are **little-endian** on the wire (struct
format prefix '<'), whatever the byte order of the host.

This module centralizes:
- format constants (magics, header size, field offsets)
- pack/unpack helpers for u32
- safe file read helpers (read_exact, decode_cstring)
"""

from typing import BinaryIO
import struct

# ---- Format constants ----
MSDOS_MAGIC = b'MZ'                 # PE/COFF MS-DOS stub magic
ZIMG_MAGIC = b'zimg'                # Linux EFI zboot marker
LINUX_MAGIC = b'\xcd\x23\x82\x81'   # Linux EFI PE header magic, unspecified arch

COMPRESSION_TYPE_LEN = 32           # NUL terminated label field

# Field offsets from the start of the image
OFF_MSDOS_MAGIC = 0x00
OFF_RESERVED0 = 0x02
OFF_ZIMG_MAGIC = 0x04
OFF_PAYLOAD_OFFSET = 0x08
OFF_PAYLOAD_SIZE = 0x0C
OFF_RESERVED1 = 0x10
OFF_COMPRESSION_TYPE = 0x18
OFF_LINUX_MAGIC = 0x38
OFF_PE_HEADER_OFFSET = 0x3C

# Validated header prefix (msdos magic through linux magic).
HEADER_SIZE = 0x3C  # 60 bytes
# Full upstream header, including the trailing pe_header_offset.
FULL_HEADER_SIZE = 0x40  # 64 bytes

# Payload copy chunk (bytes)
CHUNK_SIZE = 16384

# ---- Struct helpers (little-endian) ----
def pack_u32(x: int) -> bytes:
    return struct.pack('<I', x)

def unpack_u32_at(buf: bytes, offset: int) -> int:
    return struct.unpack_from('<I', buf, offset)[0]

# ---- Convenience / IO helpers ----
def read_exact(f: BinaryIO, n: int) -> bytes:
    """
    Read exactly n bytes from file-like object f.
    Raises EOFError if fewer than n bytes available.
    """
    data = f.read(n)
    if len(data) != n:
        raise EOFError(f"Expected {n} bytes, got {len(data)} bytes")
    return data

def decode_cstring(b: bytes) -> str:
    """
    Decode a fixed-size, NUL-padded ASCII field.

    Takes the bytes up to the first NUL, or the whole field if there is none.
    Bytes outside ASCII are replaced rather than rejected.
    """
    end = b.find(b'\x00')
    if end != -1:
        b = b[:end]
    return b.decode('ascii', errors='replace')

def encode_cstring(s: str, size: int) -> bytes:
    """
    Encode s as ASCII into a NUL-padded field of exactly `size` bytes.
    A label of exactly `size` bytes is stored without a terminator.
    """
    raw = s.encode('ascii')
    if len(raw) > size:
        raise ValueError(f"String too long for {size}-byte field: {s!r}")
    return raw.ljust(size, b'\x00')
