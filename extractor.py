# extractor.py
"""
Payload extraction for EFI zboot images.

The compressed payload is copied verbatim; decompressing it is left to
external tools (gzip, zstd, ...).

Failure policy: a failed copy leaves whatever was already written in the
output. The output is only created once the input header has parsed, so a
rejected image never leaves an empty output file behind.
"""

import logging
from typing import BinaryIO, Optional

from byte_utils import CHUNK_SIZE, read_exact
from reader import read_header
from header_utils import ZbootHeader
from zboot_errors import SeekFailed, ShortRead, WriteFailed

logger = logging.getLogger(__name__)


def copy_payload(fin: BinaryIO,
                 fout: BinaryIO,
                 offset: int,
                 length: int,
                 chunk_size: int = CHUNK_SIZE) -> int:
    """
    Copy `length` bytes starting at absolute `offset` in fin to fout.

    Works in chunks of at most chunk_size bytes, so memory use does not depend
    on length. A zero length returns immediately without touching either
    stream. Returns the number of bytes copied.

    Raises SeekFailed, ShortRead or WriteFailed. Nothing is retried and output
    written before a failure is not rolled back.
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    if length == 0:
        return 0

    try:
        if offset < 0:
            raise ValueError(f"negative offset {offset}")
        fin.seek(offset)
    except (OSError, ValueError, OverflowError) as e:
        raise SeekFailed(f"Error seeking to payload offset {offset}: {e}") from e

    copied = 0
    while copied < length:
        size = min(length - copied, chunk_size)

        try:
            chunk = read_exact(fin, size)
        except (EOFError, OSError) as e:
            raise ShortRead(copied, length) from e

        try:
            written = fout.write(chunk)
        except (OSError, ValueError) as e:
            raise WriteFailed(f"Error writing payload at byte {copied}: {e}") from e
        # Raw (unbuffered) sinks may accept fewer bytes than offered.
        if written is not None and written != size:
            raise WriteFailed(f"Short write at byte {copied}: {written} of {size} bytes")

        copied += size

    try:
        fout.flush()
    except (OSError, ValueError) as e:
        raise WriteFailed(f"Error flushing payload: {e}") from e

    logger.debug("Copied %d bytes from offset %d", copied, offset)
    return copied


def extract_payload(in_path: str, out_path: Optional[str] = None) -> ZbootHeader:
    """
    Parse the zboot image at in_path and, if out_path is given, write its
    compressed payload there.

    The output file is opened only after the header has been validated.
    Returns the parsed header.
    """
    with open(in_path, 'rb') as fin:
        header = read_header(fin)
        logger.info("%s: %s payload, %d bytes at offset %d",
                    in_path, header.compression_type,
                    header.payload_size, header.payload_offset)

        if out_path is not None:
            with open(out_path, 'wb') as fout:
                copy_payload(fin, fout, header.payload_offset, header.payload_size)
            logger.info("Wrote %d payload bytes to %s", header.payload_size, out_path)

    return header
