import threading
from dataclasses import replace

import pytest

from cas_store import EntryNotFound
from cas_verify.digest import check_contents
from cas_verify.errors import Interrupted, UnsupportedAlgorithm


@pytest.mark.parametrize("algorithm", ["md5", "sha1", "sha256", "sha512"])
def test_matching_digest_reports_nothing(store_builder, algorithm):
    info = store_builder.add("e", b"payload" * 1000, algorithm=algorithm)
    store = store_builder.open()
    assert check_contents(store, info) is None


def test_directory_entry_matches(store_builder):
    info = store_builder.add("d", {"bin/tool": b"#!/bin/sh\n", "share/doc": b"docs"})
    store = store_builder.open()
    assert check_contents(store, info) is None


def test_altered_recorded_digest_reports_both_values(store_builder):
    info = store_builder.add("e", b"payload")
    store = store_builder.open()

    tampered = bytearray(info.digest)
    tampered[0] ^= 0xFF
    bad = replace(info, digest=bytes(tampered))

    mismatch = check_contents(store, bad)
    assert mismatch is not None
    assert mismatch.expected == bytes(tampered)
    assert mismatch.actual == info.digest
    assert mismatch.expected_hex == "sha256:" + bytes(tampered).hex()
    assert mismatch.actual_hex == "sha256:" + info.digest.hex()


def test_tampered_content_detected(store_builder):
    info = store_builder.add("e", b"original")
    store = store_builder.open()
    (store_builder.root / "entries" / "e").write_bytes(b"0riginal")

    mismatch = check_contents(store, info)
    assert mismatch is not None
    assert mismatch.expected == info.digest


def test_missing_content_is_an_error_not_a_mismatch(store_builder):
    info = store_builder.add("e", b"x")
    store = store_builder.open()
    (store_builder.root / "entries" / "e").unlink()

    with pytest.raises(EntryNotFound):
        check_contents(store, info)


def test_unknown_algorithm(store_builder):
    info = store_builder.add("e", b"x")
    store = store_builder.open()
    with pytest.raises(UnsupportedAlgorithm):
        check_contents(store, replace(info, algorithm="blake9"))


def test_cancel_stops_streaming(store_builder):
    info = store_builder.add("e", b"x")
    store = store_builder.open()
    cancel = threading.Event()
    cancel.set()
    with pytest.raises(Interrupted):
        check_contents(store, info, cancel)
