# tools/benchmark_extract.py
import time, os, sys
from reader import inspect_image
from extractor import extract_payload

image_path = sys.argv[1]
out_path = sys.argv[2]

# header only
t0 = time.time()
header = inspect_image(image_path)
t_inspect = time.time() - t0

# chunked extraction
t0 = time.time()
extract_payload(image_path, out_path)
t_extract = time.time() - t0

print("compression:", header.compression_type)
print("inspect time:", t_inspect)
print("extract time:", t_extract)
print("image size (bytes):", os.path.getsize(image_path))
print("payload size (bytes):", os.path.getsize(out_path))
