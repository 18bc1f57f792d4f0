import sys
from qrdelta.compare import parse_record
from qrdelta.qr import decode_qr_from_bytes

if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python scripts/qr_smoke.py <image_path>")
        sys.exit(1)
    path = sys.argv[1]
    with open(path, "rb") as f:
        b = f.read()
    res = decode_qr_from_bytes(b)
    print("Decoded:", res)
    if res:
        rec = parse_record(res, path)
        for k, v in rec.params.items():
            print(f"  {k} = {v}")
        if rec.parsed_time is not None:
            print("createTime:", rec.parsed_time.formatted or "format non reconnu")
