"""Run-level counters, status text and exit status."""
from __future__ import annotations

import threading
from dataclasses import dataclass

from .const import ERRORS, EXIT_CORRUPTED, EXIT_FAILED, EXIT_UNTRUSTED
from .logic import Outcome


@dataclass(frozen=True)
class ExitFlags:
    corrupted: bool = False
    untrusted: bool = False
    failed: bool = False

    @property
    def code(self) -> int:
        return (
            (EXIT_CORRUPTED if self.corrupted else 0)
            | (EXIT_UNTRUSTED if self.untrusted else 0)
            | (EXIT_FAILED if self.failed else 0)
        )


class RunStatus:
    """Counters for one verification run.

    Only ``record`` mutates the counters. They never decrease; a new run
    gets a new RunStatus.
    """

    def __init__(self, total: int):
        self.total = total
        self.done = 0
        self.corrupted = 0
        self.untrusted = 0
        self.failed = 0
        self.cancelled = False
        self.problems: list[dict] = []
        self._lock = threading.Lock()

    def record(self, outcome: Outcome) -> str:
        """Apply one entry's outcome and return the updated progress line."""
        with self._lock:
            if outcome.failed:
                self.failed += 1
                self.problems.append({
                    "code": "E_FAILED", "message": ERRORS["E_FAILED"],
                    "path": outcome.path, "detail": outcome.error,
                })
            else:
                if outcome.corrupted:
                    self.corrupted += 1
                    self.problems.append({
                        "code": "E_CORRUPTED", "message": ERRORS["E_CORRUPTED"],
                        "path": outcome.path,
                        "expected": outcome.mismatch.expected_hex,
                        "computed": outcome.mismatch.actual_hex,
                    })
                if outcome.untrusted:
                    self.untrusted += 1
                    self.problems.append({
                        "code": "E_UNTRUSTED", "message": ERRORS["E_UNTRUSTED"],
                        "path": outcome.path,
                    })
                self.done += 1
            return self._render(final=False)

    def _render(self, final: bool) -> str:
        if final:
            s = f"checked {self.total} paths"
        else:
            s = f"[{self.done}/{self.total} checked"
        if self.corrupted:
            s += f", {self.corrupted} corrupted"
        if self.untrusted:
            s += f", {self.untrusted} untrusted"
        if self.failed:
            s += f", {self.failed} failed"
        if not final:
            s += "]"
        return s

    def progress(self) -> str:
        with self._lock:
            return self._render(final=False)

    def summary(self) -> str:
        with self._lock:
            return self._render(final=True)

    def exit_flags(self) -> ExitFlags:
        with self._lock:
            return ExitFlags(
                corrupted=self.corrupted > 0,
                untrusted=self.untrusted > 0,
                failed=self.failed > 0,
            )

    def as_dict(self) -> dict:
        code = self.exit_flags().code
        with self._lock:
            errors = list(self.problems)
            return {
                "status": "PASS" if code == 0 and not self.cancelled else "FAIL",
                "checked": self.done,
                "total": self.total,
                "corrupted": self.corrupted,
                "untrusted": self.untrusted,
                "failed": self.failed,
                "cancelled": self.cancelled,
                "exit_code": code,
                "error_count": len(errors),
                "errors": errors,
            }
