# zboot_errors.py
"""
Exception types raised while inspecting or extracting EFI zboot images.

ParseError kinds come from the header parser, CopyError kinds from the payload
copier. Every kind is terminal for the current invocation; nothing is retried.
"""

from typing import Iterable


class ZbootError(Exception):
    """Base class for all zboot inspection/extraction failures."""


class ParseError(ZbootError, ValueError):
    """The image header could not be parsed."""


class TruncatedHeader(ParseError, EOFError):
    """Fewer bytes than the fixed header size were available."""

    def __init__(self, available: int, required: int):
        super().__init__(f"Header truncated: got {available} bytes, need {required}")
        self.available = available
        self.required = required


class NotAZbootImage(ParseError):
    """One or more of the magic fields did not match."""

    def __init__(self, mismatched: Iterable[str]):
        self.mismatched = tuple(mismatched)
        super().__init__("Bad magic: not an EFI zboot image (" + ", ".join(self.mismatched) + ")")


class CopyError(ZbootError, OSError):
    """The payload could not be copied to the output."""


class SeekFailed(CopyError):
    """The input could not be positioned at the payload offset."""


class ShortRead(CopyError, EOFError):
    """The input ended before the declared payload length was read."""

    def __init__(self, copied: int, expected: int):
        super().__init__(f"Input ended after {copied} of {expected} payload bytes")
        self.copied = copied
        self.expected = expected


class WriteFailed(CopyError):
    """The output rejected a write."""
