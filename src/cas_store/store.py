"""Local content-addressed store: metadata index plus entry content."""
from __future__ import annotations

import struct
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator
from urllib.parse import urlparse

import pandas as pd
import pyarrow as pa
import pyarrow.parquet as pq

from .ids import fingerprint
from .protocol import (
    CHUNK_SIZE,
    ENTRIES_DIR,
    FILE_SIZE_FMT,
    INDEX_FILE,
    LOCAL_SCHEMES,
)

INDEX_SCHEMA = pa.schema(
    [
        ("path", pa.string()),
        ("algorithm", pa.string()),
        ("digest", pa.string()),
        ("ultimate", pa.bool_()),
        ("sigs", pa.list_(pa.string())),
    ]
)


class StoreError(Exception):
    """Base class for store access failures."""


class EntryNotFound(StoreError):
    pass


class StoreUnavailable(StoreError):
    pass


@dataclass(frozen=True)
class EntryInfo:
    """Recorded metadata of one store entry."""

    path: str
    algorithm: str
    digest: bytes
    ultimate: bool = False
    sigs: frozenset[str] = field(default_factory=frozenset)

    def fingerprint(self) -> bytes:
        return fingerprint(self.path, self.algorithm, self.digest)


def _info_from_row(row: dict) -> EntryInfo:
    return EntryInfo(
        path=row["path"],
        algorithm=row["algorithm"].lower(),
        digest=bytes.fromhex(row["digest"]),
        ultimate=bool(row["ultimate"]),
        sigs=frozenset(row["sigs"] or ()),
    )


def _read_chunks(p: Path) -> Iterator[bytes]:
    with open(p, "rb") as f:
        while True:
            chunk = f.read(CHUNK_SIZE)
            if not chunk:
                return
            yield chunk


class LocalStore:
    """A store rooted at a directory.

    Layout::

        <root>/index.parquet     one row per entry (see INDEX_SCHEMA)
        <root>/entries/<path>    entry content, a file or a directory

    Opening is lazy: nothing touches the filesystem until the first query,
    so a peer that is down only fails the calls made against it. Once the
    index is loaded the store is read-only and safe to share across threads.
    """

    def __init__(self, root: Path, uri: str | None = None):
        self.root = Path(root)
        self.uri = uri or str(self.root)
        self.closed = False
        self._index: dict[str, EntryInfo] | None = None
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return f"LocalStore({self.uri!r})"

    def __enter__(self) -> "LocalStore":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    @property
    def entries_dir(self) -> Path:
        return self.root / ENTRIES_DIR

    def _cached_index(self) -> dict[str, EntryInfo] | None:
        with self._lock:
            if self.closed:
                raise StoreError(f"store '{self.uri}' is closed")
            return self._index

    def _read_index(self) -> dict[str, EntryInfo]:
        try:
            if not self.root.is_dir():
                raise StoreUnavailable(f"cannot open store '{self.uri}': no such directory")
            index_path = self.root / INDEX_FILE
            if not index_path.exists():
                return {}
            rows = pq.read_table(index_path).to_pylist()
            return {row["path"]: _info_from_row(row) for row in rows}
        except (OSError, ValueError, KeyError, pa.ArrowException) as e:
            raise StoreUnavailable(f"cannot read index of store '{self.uri}': {e}") from e

    def _load_index(self) -> dict[str, EntryInfo]:
        index = self._cached_index()
        if index is not None:
            return index

        # Read without holding the lock; the first reader to finish publishes.
        index = self._read_index()
        with self._lock:
            if self.closed:
                raise StoreError(f"store '{self.uri}' is closed")
            if self._index is None:
                self._index = index
            return self._index

    def _content_exists(self, path: str) -> bool:
        try:
            return self._content_path(path).exists()
        except OSError as e:
            raise StoreUnavailable(f"cannot access '{path}' in store '{self.uri}': {e}") from e

    def _content_path(self, path: str) -> Path:
        if not path or "/" in path or path in {".", ".."}:
            raise StoreError(f"invalid entry name '{path}'")
        return self.entries_dir / path

    def query_metadata(self, path: str) -> EntryInfo:
        info = self._load_index().get(path)
        if info is None:
            raise EntryNotFound(f"path '{path}' is not valid in store '{self.uri}'")
        return info

    def is_valid(self, path: str) -> bool:
        if path not in self._load_index():
            return False
        return self._content_exists(path)

    def query_all_valid(self) -> list[str]:
        return sorted(p for p in self._load_index() if self._content_exists(p))

    def stream_content(self, path: str) -> Iterator[bytes]:
        """Yield the serialized content of an entry in chunks.

        A file entry streams its bytes. A directory streams every regular
        file below it in sorted order, each as
        ``rel_path + NUL + size(u64 LE) + bytes``.
        """
        target = self._content_path(path)
        if target.is_file():
            yield from _read_chunks(target)
            return
        if not target.is_dir():
            raise EntryNotFound(f"content of '{path}' is missing from store '{self.uri}'")

        files = sorted(
            (f for f in target.rglob("*") if f.is_file()),
            key=lambda f: f.relative_to(target).as_posix(),
        )
        for f in files:
            rel = f.relative_to(target).as_posix()
            yield rel.encode("utf-8") + b"\x00" + struct.pack(FILE_SIZE_FMT, f.stat().st_size)
            yield from _read_chunks(f)

    def to_entry_path(self, arg: str) -> str:
        """Map a CLI argument (entry name or a path inside entries/) to an entry name."""
        if "/" not in arg:
            return arg
        try:
            rel = Path(arg).resolve().relative_to(self.entries_dir.resolve())
        except ValueError:
            raise StoreError(f"path '{arg}' is not in the store") from None
        if not rel.parts:
            raise StoreError(f"path '{arg}' is not in the store")
        return rel.parts[0]

    def close(self) -> None:
        with self._lock:
            self.closed = True
            self._index = None


def open_store(uri: str) -> LocalStore:
    """Open a store by path or ``file://`` URI."""
    parsed = urlparse(uri)
    if parsed.scheme not in LOCAL_SCHEMES:
        raise StoreError(f"don't know how to open store '{uri}'")
    root = parsed.path if parsed.scheme == "file" else uri
    return LocalStore(Path(root), uri=uri)


def write_index(root: Path, entries: Iterable[EntryInfo]) -> Path:
    """Write the metadata index of a store rooted at ``root``."""
    root = Path(root)
    (root / ENTRIES_DIR).mkdir(parents=True, exist_ok=True)

    rows = [
        {
            "path": e.path,
            "algorithm": e.algorithm,
            "digest": e.digest.hex(),
            "ultimate": bool(e.ultimate),
            "sigs": sorted(e.sigs),
        }
        for e in entries
    ]
    df = pd.DataFrame(rows, columns=INDEX_SCHEMA.names)
    if not df.empty:
        df = df.sort_values("path")

    out = root / INDEX_FILE
    pq.write_table(pa.Table.from_pandas(df, schema=INDEX_SCHEMA, preserve_index=False), out)
    return out
