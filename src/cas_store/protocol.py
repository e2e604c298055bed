"""Store layout constants.

Single source of truth for on-disk names and index layout.
Keep this file stable. Stores written by older tools must stay readable.
"""

# Layout
ENTRIES_DIR = "entries"
INDEX_FILE = "index.parquet"
TRUST_STORE_FILE = "trust_store.json"

# Fingerprint format version (first field of the signed message)
FINGERPRINT_VERSION = 1

# Digest algorithms accepted in the index
SUPPORTED_ALGORITHMS = ("md5", "sha1", "sha256", "sha512")

# Directory serialization: [RelPath | NUL | Size(8, LE) | Bytes] per file
FILE_SIZE_FMT = "<Q"

# Streaming read size
CHUNK_SIZE = 64 * 1024  # 64 KiB

# URI schemes open_store() understands
LOCAL_SCHEMES = ("", "file")
