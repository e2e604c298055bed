"""Deterministic digest strings and signing fingerprints."""
from __future__ import annotations

from .protocol import FINGERPRINT_VERSION


def format_digest(algorithm: str, digest: bytes) -> str:
    """Render a digest as ``<algorithm>:<hex>``."""
    return f"{algorithm}:{digest.hex()}"


def fingerprint(path: str, algorithm: str, digest: bytes) -> bytes:
    """Message covered by an entry signature.

    Binds the entry name to its recorded content digest, so a signature
    copied onto another entry, or onto re-hashed content, does not verify.
    """
    payload = f"{FINGERPRINT_VERSION};{path};{format_digest(algorithm, digest)}"
    return payload.encode("utf-8")
