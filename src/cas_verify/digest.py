from __future__ import annotations

import hashlib
import threading
from dataclasses import dataclass

from cas_store import EntryInfo, LocalStore, format_digest
from cas_store.protocol import SUPPORTED_ALGORITHMS

from .errors import UnsupportedAlgorithm, check_interrupt


@dataclass(frozen=True)
class DigestMismatch:
    path: str
    algorithm: str
    expected: bytes
    actual: bytes

    @property
    def expected_hex(self) -> str:
        return format_digest(self.algorithm, self.expected)

    @property
    def actual_hex(self) -> str:
        return format_digest(self.algorithm, self.actual)


def new_hasher(algorithm: str):
    if algorithm not in SUPPORTED_ALGORITHMS:
        raise UnsupportedAlgorithm(f"unsupported digest algorithm '{algorithm}'")
    return hashlib.new(algorithm)


def check_contents(
    store: LocalStore,
    info: EntryInfo,
    cancel: threading.Event | None = None,
) -> DigestMismatch | None:
    """Recompute the digest of an entry's content and compare it to the recorded one.

    Returns None on a match. Store errors while streaming propagate; the
    cancel event is polled between chunks.
    """
    h = new_hasher(info.algorithm)
    check_interrupt(cancel)
    for chunk in store.stream_content(info.path):
        check_interrupt(cancel)
        h.update(chunk)

    actual = h.digest()
    if actual == info.digest:
        return None
    return DigestMismatch(info.path, info.algorithm, info.digest, actual)
