# header_utils.py

"""
Header builder & parser for EFI zboot images.

Functions:
- parse_header(header_bytes) -> ZbootHeader
- build_header(payload_offset, payload_size, compression_type, ...) -> bytes
- format_report(header) -> str

Layout (little-endian, offsets from start of image):

  0x00  msdos_magic        2   "MZ"
  0x02  reserved0          2
  0x04  zimg               4   "zimg"
  0x08  payload_offset     4   u32
  0x0C  payload_size       4   u32
  0x10  reserved1          8
  0x18  compression_type  32   NUL terminated
  0x38  linux_magic        4   CD 23 82 81
  0x3C  pe_header_offset   4   u32 (optional trailing field)

See drivers/firmware/efi/libstub/zboot-header.S in the Linux tree.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from byte_utils import (
    MSDOS_MAGIC, ZIMG_MAGIC, LINUX_MAGIC,
    COMPRESSION_TYPE_LEN, HEADER_SIZE, FULL_HEADER_SIZE,
    OFF_MSDOS_MAGIC, OFF_ZIMG_MAGIC, OFF_PAYLOAD_OFFSET, OFF_PAYLOAD_SIZE,
    OFF_COMPRESSION_TYPE, OFF_LINUX_MAGIC, OFF_PE_HEADER_OFFSET,
    pack_u32, unpack_u32_at, decode_cstring, encode_cstring,
)
from zboot_errors import TruncatedHeader, NotAZbootImage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ZbootHeader:
    """Validated EFI zboot header. Integers are plain (host order) ints."""
    payload_offset: int
    payload_size: int
    compression_type: str
    pe_header_offset: Optional[int] = None

    @property
    def payload_end(self) -> int:
        return self.payload_offset + self.payload_size


def parse_header(header_bytes: bytes) -> ZbootHeader:
    """
    Parse the header at the start of header_bytes.

    Requires at least HEADER_SIZE (60) bytes. pe_header_offset is decoded when
    FULL_HEADER_SIZE (64) bytes are available and left as None otherwise.

    Raises TruncatedHeader if the buffer is too short, NotAZbootImage if any
    of the three magic fields mismatches.
    """
    if len(header_bytes) < HEADER_SIZE:
        raise TruncatedHeader(len(header_bytes), HEADER_SIZE)

    # All three magics are checked so the error names every mismatch.
    mismatched = []
    if header_bytes[OFF_MSDOS_MAGIC:OFF_MSDOS_MAGIC + len(MSDOS_MAGIC)] != MSDOS_MAGIC:
        mismatched.append('msdos_magic')
    if header_bytes[OFF_ZIMG_MAGIC:OFF_ZIMG_MAGIC + len(ZIMG_MAGIC)] != ZIMG_MAGIC:
        mismatched.append('zimg_magic')
    if header_bytes[OFF_LINUX_MAGIC:OFF_LINUX_MAGIC + len(LINUX_MAGIC)] != LINUX_MAGIC:
        mismatched.append('linux_magic')
    if mismatched:
        raise NotAZbootImage(mismatched)

    payload_offset = unpack_u32_at(header_bytes, OFF_PAYLOAD_OFFSET)
    payload_size = unpack_u32_at(header_bytes, OFF_PAYLOAD_SIZE)

    label = header_bytes[OFF_COMPRESSION_TYPE:OFF_COMPRESSION_TYPE + COMPRESSION_TYPE_LEN]
    compression_type = decode_cstring(label)

    pe_header_offset = None
    if len(header_bytes) >= FULL_HEADER_SIZE:
        pe_header_offset = unpack_u32_at(header_bytes, OFF_PE_HEADER_OFFSET)

    header = ZbootHeader(
        payload_offset=payload_offset,
        payload_size=payload_size,
        compression_type=compression_type,
        pe_header_offset=pe_header_offset,
    )
    logger.debug("Parsed zboot header: %s", header)
    return header


def build_header(payload_offset: int,
                 payload_size: int,
                 compression_type: str,
                 pe_header_offset: Optional[int] = None) -> bytes:
    """
    Build header bytes deterministically.

    Returns HEADER_SIZE bytes, or FULL_HEADER_SIZE bytes when pe_header_offset
    is given. Reserved fields are zero.
    """
    buf = bytearray(FULL_HEADER_SIZE if pe_header_offset is not None else HEADER_SIZE)

    buf[OFF_MSDOS_MAGIC:OFF_MSDOS_MAGIC + 2] = MSDOS_MAGIC
    buf[OFF_ZIMG_MAGIC:OFF_ZIMG_MAGIC + 4] = ZIMG_MAGIC
    buf[OFF_PAYLOAD_OFFSET:OFF_PAYLOAD_OFFSET + 4] = pack_u32(int(payload_offset))
    buf[OFF_PAYLOAD_SIZE:OFF_PAYLOAD_SIZE + 4] = pack_u32(int(payload_size))
    buf[OFF_COMPRESSION_TYPE:OFF_COMPRESSION_TYPE + COMPRESSION_TYPE_LEN] = \
        encode_cstring(compression_type, COMPRESSION_TYPE_LEN)
    buf[OFF_LINUX_MAGIC:OFF_LINUX_MAGIC + 4] = LINUX_MAGIC
    if pe_header_offset is not None:
        buf[OFF_PE_HEADER_OFFSET:OFF_PE_HEADER_OFFSET + 4] = pack_u32(int(pe_header_offset))

    return bytes(buf)


def format_report(header: ZbootHeader) -> str:
    """Human readable summary, one field per line."""
    return (
        f"Compression:    {header.compression_type}\n"
        f"Payload offset: {header.payload_offset} Bytes\n"
        f"Payload size:   {header.payload_size} Bytes"
    )
