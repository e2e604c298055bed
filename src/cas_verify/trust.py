from __future__ import annotations

import logging
from typing import Iterable, Mapping, Sequence

from cas_store import EntryInfo, LocalStore

from .crypto import verify_signature

logger = logging.getLogger(__name__)


def resolve_trust(
    info: EntryInfo,
    sigs_needed: int,
    peers: Sequence[LocalStore],
    public_keys: Mapping[str, bytes],
) -> bool:
    """Decide whether an entry is trusted.

    An ultimate entry is trusted outright unless the caller asked for an
    explicit number of signatures. Otherwise at least ``max(sigs_needed, 1)``
    distinct valid signatures must be found, first among the entry's own,
    then from each peer in order until the count is reached.
    """
    if info.ultimate and not sigs_needed:
        return True

    needed = sigs_needed or 1
    message = info.fingerprint()
    seen: set[str] = set()
    valid = 0

    def add_sigs(sigs: Iterable[str]) -> None:
        nonlocal valid
        for sig in sigs:
            if sig in seen:
                continue
            seen.add(sig)
            if verify_signature(public_keys, message, sig):
                valid += 1

    def quorum() -> bool:
        return valid >= needed

    add_sigs(info.sigs)

    for peer in peers:
        if quorum():
            break
        try:
            if not peer.is_valid(info.path):
                continue
            add_sigs(peer.query_metadata(info.path).sigs)
        except Exception as e:
            # A failing peer is skipped; the remaining peers may still complete the quorum.
            logger.error("error: %s", e)

    return quorum()
