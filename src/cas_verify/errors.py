from __future__ import annotations

import threading


class VerifyError(Exception):
    """Base class for verification errors that are not store failures."""


class UnsupportedAlgorithm(VerifyError):
    pass


class Interrupted(VerifyError):
    def __init__(self, message: str = "interrupted by the user"):
        super().__init__(message)


def check_interrupt(cancel: threading.Event | None) -> None:
    if cancel is not None and cancel.is_set():
        raise Interrupted()
