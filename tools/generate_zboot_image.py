# tools/generate_zboot_image.py
import os, sys

from header_utils import build_header

out = sys.argv[1]
size = int(sys.argv[2])                              # payload bytes, e.g. 50000000
comp = sys.argv[3] if len(sys.argv) > 3 else 'gzip'  # compression label
# payload sits right after a 4 KiB stub, like a real zboot PE image
payload_offset = 4096
header = build_header(payload_offset, size, comp, pe_header_offset=0x40)
with open(out, 'wb') as f:
    f.write(header)
    f.write(b'\x00' * (payload_offset - len(header)))
    remaining = size
    while remaining:
        n = min(remaining, 1 << 20)
        f.write(os.urandom(n))
        remaining -= n
print("wrote", out)
