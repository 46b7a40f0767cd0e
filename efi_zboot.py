#!/usr/bin/env python3
"""
efi_zboot.py

Inspect an EFI zboot kernel image and optionally extract its compressed payload.

Usage:
  python efi_zboot.py  image.efi
  python efi_zboot.py  image.efi  payload.gz  [--quiet] [--verbose]

The payload is written as-is; decompress it with the tool matching the
reported compression type.

Exit codes:
  0 = success
  1 = runtime error (IO, format error, etc.)
  2 = incorrect usage (arg parsing)
"""
import sys
import logging
import argparse
from typing import List, Optional

from extractor import extract_payload
from header_utils import format_report
from zboot_errors import ZbootError, TruncatedHeader, NotAZbootImage, CopyError

logger = logging.getLogger("efi_zboot")


def _setup_logging(verbose: bool) -> None:
    """Console logging on stderr; DEBUG with --verbose, WARNING otherwise."""
    root = logging.getLogger()
    root.setLevel(logging.DEBUG if verbose else logging.WARNING)

    if not root.handlers:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(levelname)s - %(message)s'
        ))
        root.addHandler(console_handler)


def run(in_path: str, out_path: Optional[str] = None, quiet: bool = False) -> None:
    """
    Parse in_path, print the header report and extract the payload to
    out_path if given. Errors propagate to the caller.
    """
    header = extract_payload(in_path, out_path)
    if not quiet:
        print(format_report(header))
    logger.debug("PE header offset: %s, payload ends at %d",
                 header.pe_header_offset, header.payload_end)


def main(argv: Optional[List[str]] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    parser = argparse.ArgumentParser(prog='efi_zboot.py',
                                     description='Inspect EFI zboot kernel images and extract the compressed payload')
    parser.add_argument('input', help='Input EFI zboot image path')
    parser.add_argument('output', nargs='?', default=None,
                        help='Output path for the compressed payload (optional)')
    parser.add_argument('-q', '--quiet', action='store_true', help='Do not print the header report')
    parser.add_argument('-v', '--verbose', action='store_true', help='Log parse and copy details to stderr')

    try:
        args = parser.parse_args(argv)
    except SystemExit:
        return 2

    _setup_logging(args.verbose)

    try:
        run(args.input, args.output, quiet=args.quiet)
        return 0
    except TruncatedHeader:
        print("Error reading EFI zboot header", file=sys.stderr)
    except NotAZbootImage as e:
        print("Error: input is not a kernel EFI image", file=sys.stderr)
        logger.debug("Mismatched magic fields: %s", ", ".join(e.mismatched))
    except CopyError as e:
        print("Error extracting payload:", e, file=sys.stderr)
    except ZbootError as e:
        print("Error:", e, file=sys.stderr)
    except OSError as e:
        if e.filename is None:
            # raised while reading an already open input
            print(f"Error reading {args.input}: {e.strerror or e}", file=sys.stderr)
        else:
            print(f"Error opening {e.filename}: {e.strerror}", file=sys.stderr)
    return 1


if __name__ == '__main__':
    sys.exit(main())
