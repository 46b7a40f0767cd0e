# reader.py
import logging
from typing import BinaryIO

from byte_utils import HEADER_SIZE, FULL_HEADER_SIZE
from header_utils import ZbootHeader, parse_header
from zboot_errors import TruncatedHeader

logger = logging.getLogger(__name__)


def read_header(f: BinaryIO) -> ZbootHeader:
    """
    Read and validate the zboot header from the current position of f.

    The position must be the start of the image. Reads HEADER_SIZE bytes, then
    up to 4 more for the trailing pe_header_offset. On failure the position of
    f is unspecified; seek before reusing it. On success the cursor ends at
    FULL_HEADER_SIZE (64) when the trailing field is present, else at EOF.

    Raises TruncatedHeader / NotAZbootImage on malformed input.
    """
    head = f.read(HEADER_SIZE)
    if len(head) < HEADER_SIZE:
        raise TruncatedHeader(len(head), HEADER_SIZE)

    tail = f.read(FULL_HEADER_SIZE - HEADER_SIZE)
    return parse_header(head + tail)


def inspect_image(path: str) -> ZbootHeader:
    """
    Open a zboot image, parse its header and close it again.
    """
    with open(path, 'rb') as f:
        header = read_header(f)
    logger.debug("%s: %s payload at %d (+%d)",
                 path, header.compression_type, header.payload_offset, header.payload_size)
    return header
