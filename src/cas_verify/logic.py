from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Mapping, Sequence

from cas_store import LocalStore

from .config import VerifyConfig
from .digest import DigestMismatch, check_contents
from .errors import check_interrupt
from .trust import resolve_trust

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Outcome:
    """Result of checking one entry.

    ``trusted`` is None when the trust check was skipped. ``error`` is set
    when the check itself failed, in which case nothing else is meaningful.
    """

    path: str
    mismatch: DigestMismatch | None = None
    trusted: bool | None = None
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    @property
    def corrupted(self) -> bool:
        return self.mismatch is not None

    @property
    def untrusted(self) -> bool:
        return self.trusted is False


def verify_entry(
    store: LocalStore,
    path: str,
    config: VerifyConfig,
    peers: Sequence[LocalStore] = (),
    public_keys: Mapping[str, bytes] | None = None,
    cancel: threading.Event | None = None,
) -> Outcome:
    """Run the content and trust checks for a single entry.

    Problems are logged as soon as they are found. Store errors and
    interrupts propagate to the caller.
    """
    check_interrupt(cancel)
    logger.debug("checking '%s'", path)

    info = store.query_metadata(path)

    mismatch = None
    if config.check_contents:
        mismatch = check_contents(store, info, cancel)
        if mismatch is not None:
            logger.error(
                "path '%s' was modified! expected hash '%s', got '%s'",
                path, mismatch.expected_hex, mismatch.actual_hex,
            )

    trusted = None
    if config.check_trust:
        trusted = resolve_trust(info, config.sigs_needed, peers, public_keys or {})
        if not trusted:
            logger.error("path '%s' is untrusted", path)

    return Outcome(path, mismatch=mismatch, trusted=trusted)
