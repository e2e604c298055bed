from __future__ import annotations

import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Iterable, Mapping, Sequence

from cas_store import LocalStore, open_store

from .config import VerifyConfig
from .errors import Interrupted
from .logic import Outcome, verify_entry
from .status import RunStatus

logger = logging.getLogger(__name__)

StatusCallback = Callable[[str], None]


class VerifyPool:
    """Checks entries on a bounded thread pool.

    Workers share the store, peers, config and keys read-only and hand
    their outcomes back to the dispatching thread, which is the only
    writer of the RunStatus.
    """

    def __init__(
        self,
        store: LocalStore,
        config: VerifyConfig,
        peers: Sequence[LocalStore] = (),
        public_keys: Mapping[str, bytes] | None = None,
        cancel: threading.Event | None = None,
    ):
        self.store = store
        self.config = config
        self.peers = tuple(peers)
        self.public_keys = dict(public_keys or {})
        self.cancel = cancel if cancel is not None else threading.Event()
        self.jobs = config.jobs or os.cpu_count() or 1

    def _run_task(self, path: str) -> Outcome | None:
        try:
            return verify_entry(
                self.store, path, self.config, self.peers, self.public_keys, self.cancel
            )
        except Interrupted:
            return None
        except Exception as e:
            logger.error("error: %s", e)
            return Outcome(path, error=str(e) or type(e).__name__)

    def run(self, paths: Sequence[str], on_status: StatusCallback | None = None) -> RunStatus:
        status = RunStatus(len(paths))
        if on_status is not None:
            on_status(status.progress())

        executor = ThreadPoolExecutor(max_workers=self.jobs, thread_name_prefix="cas-verify")
        stopping = False
        try:
            futures = [executor.submit(self._run_task, p) for p in paths]
            for future in as_completed(futures):
                if self.cancel.is_set() and not stopping:
                    # Stop dispatching; tasks already finished are still counted.
                    stopping = True
                    for f in futures:
                        f.cancel()
                if future.cancelled():
                    continue
                outcome = future.result()
                if outcome is not None:
                    line = status.record(outcome)
                    if on_status is not None:
                        on_status(line)
        except KeyboardInterrupt:
            self.cancel.set()
        finally:
            executor.shutdown(wait=True, cancel_futures=self.cancel.is_set())

        status.cancelled = self.cancel.is_set() and status.done + status.failed < status.total
        return status


def verify_paths(
    store: LocalStore,
    paths: Iterable[str],
    config: VerifyConfig,
    *,
    public_keys: Mapping[str, bytes] | None = None,
    cancel: threading.Event | None = None,
    open_peer: Callable[[str], LocalStore] = open_store,
    on_status: StatusCallback | None = None,
) -> RunStatus:
    """Verify ``paths`` and return the run status.

    Peer stores named in ``config.substituters`` are opened once for the
    run and closed before returning, also when the run is cancelled.
    """
    peers: list[LocalStore] = []
    try:
        for uri in config.substituters:
            peers.append(open_peer(uri))
        pool = VerifyPool(store, config, peers, public_keys, cancel)
        status = pool.run(list(paths), on_status=on_status)
    finally:
        for peer in peers:
            peer.close()

    logger.info(status.summary())
    return status
