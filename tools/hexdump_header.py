# tools/hexdump_header.py
import struct, sys

path = sys.argv[1]
with open(path, 'rb') as f:
    msdos = f.read(2); print("msdos_magic:", msdos)
    reserved0 = f.read(2)
    zimg = f.read(4); print("zimg:", zimg)
    payload_offset, payload_size = struct.unpack('<II', f.read(8))
    print("payload_offset:", payload_offset)
    print("payload_size:", payload_size)
    reserved1 = f.read(8)
    comp = f.read(32); print("compression_type (hex):", comp.hex())
    linux = f.read(4); print("linux_magic (hex):", linux.hex())
    pe = f.read(4)
    if len(pe) == 4:
        print("pe_header_offset:", struct.unpack('<I', pe)[0])
    # first 16 bytes of the payload (gzip starts 1f8b, zstd 28b52ffd)
    f.seek(payload_offset)
    post = f.read(16)
    print("payload head (hex):", post.hex())
