import sys
from pathlib import Path

def main():
    if len(sys.argv) != 3:
        print("Usage: corrupt_one_byte.py <store> <entry>")
        raise SystemExit(2)

    target = Path(sys.argv[1]) / "entries" / sys.argv[2]
    if target.is_dir():
        files = sorted(f for f in target.rglob("*") if f.is_file() and f.stat().st_size > 0)
        if not files:
            print(f"No non-empty file under {target}.")
            raise SystemExit(2)
        target = files[0]
    if not target.is_file():
        print(f"No such entry: {target}")
        raise SystemExit(2)

    b = bytearray(target.read_bytes())
    if not b:
        print("File is empty, nothing to corrupt.")
        raise SystemExit(2)

    # Flip the low bit of the middle byte; the recorded digest is left alone.
    idx = len(b) // 2
    b[idx] ^= 0x01
    target.write_bytes(bytes(b))
    print(f"Corrupted 1 byte at offset {idx} in {target}")

if __name__ == "__main__":
    main()
