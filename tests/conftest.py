import hashlib
from dataclasses import replace
from pathlib import Path

import pytest

from cas_store import EntryInfo, LocalStore, write_index
from cas_verify.crypto import generate_keypair, parse_public_keys, sign_detached


class StoreBuilder:
    """Lay out a store on disk entry by entry, then write its index."""

    def __init__(self, root: Path):
        self.root = root
        self.infos: dict[str, EntryInfo] = {}
        (root / "entries").mkdir(parents=True, exist_ok=True)

    def add(self, name, content, *, algorithm="sha256", ultimate=False, signers=(), sigs=()):
        target = self.root / "entries" / name
        if isinstance(content, dict):
            for rel, data in content.items():
                p = target / rel
                p.parent.mkdir(parents=True, exist_ok=True)
                p.write_bytes(data)
        else:
            target.write_bytes(content)

        h = hashlib.new(algorithm)
        for chunk in LocalStore(self.root).stream_content(name):
            h.update(chunk)
        info = EntryInfo(name, algorithm, h.digest(), ultimate)
        return self.put(info, signers=signers, sigs=sigs)

    def put(self, info, *, signers=(), sigs=()):
        """Record metadata for ``info`` with signatures by ``signers`` plus raw ``sigs``."""
        all_sigs = {sign_detached(sk, info.fingerprint()) for sk in signers} | set(sigs)
        info = replace(info, sigs=frozenset(all_sigs))
        self.infos[info.path] = info
        return info

    def mirror(self, info, *, signers=(), sigs=()):
        """Advertise ``info`` as a peer would: metadata plus a content placeholder."""
        (self.root / "entries" / info.path).write_bytes(b"")
        return self.put(replace(info, sigs=frozenset()), signers=signers, sigs=sigs)

    def write(self) -> Path:
        write_index(self.root, self.infos.values())
        return self.root

    def open(self) -> LocalStore:
        self.write()
        return LocalStore(self.root)


class Keys:
    def __init__(self, *names):
        self.secret = {}
        self.public = {}
        for name in names:
            self.secret[name], self.public[name] = generate_keypair(name)

    @property
    def trusted(self) -> dict[str, bytes]:
        return parse_public_keys(self.public.values())


class RecordingPeer:
    """Wraps a peer store and records every call made against it."""

    def __init__(self, inner):
        self.inner = inner
        self.calls = []
        self.closed = False

    def is_valid(self, path):
        self.calls.append(("is_valid", path))
        return self.inner.is_valid(path)

    def query_metadata(self, path):
        self.calls.append(("query_metadata", path))
        return self.inner.query_metadata(path)

    def close(self):
        self.closed = True
        self.inner.close()


class FailingPeer:
    """Peer whose calls raise ``error``.

    With ``stage="is_valid"`` the existence check fails; with
    ``stage="query_metadata"`` the entry looks present but fetching it fails.
    """

    def __init__(self, error, stage="is_valid"):
        self.error = error
        self.stage = stage
        self.calls = []
        self.closed = False

    def is_valid(self, path):
        self.calls.append(("is_valid", path))
        if self.stage == "is_valid":
            raise self.error
        return True

    def query_metadata(self, path):
        self.calls.append(("query_metadata", path))
        raise self.error

    def close(self):
        self.closed = True


@pytest.fixture
def keys():
    return Keys("cache-a", "cache-b", "cache-c")


@pytest.fixture
def store_builder(tmp_path):
    return StoreBuilder(tmp_path / "store")


@pytest.fixture
def peer_builders(tmp_path):
    def make(n):
        return [StoreBuilder(tmp_path / f"peer{i}") for i in range(n)]
    return make
