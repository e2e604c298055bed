"""CAS Verify - concurrent integrity and trust checks for store entries."""
from .config import VerifyConfig, load_public_keys
from .digest import DigestMismatch, check_contents
from .errors import Interrupted, UnsupportedAlgorithm, VerifyError
from .logic import Outcome, verify_entry
from .pool import VerifyPool, verify_paths
from .status import ExitFlags, RunStatus
from .trust import resolve_trust

__all__ = [
    "DigestMismatch",
    "ExitFlags",
    "Interrupted",
    "Outcome",
    "RunStatus",
    "UnsupportedAlgorithm",
    "VerifyConfig",
    "VerifyError",
    "VerifyPool",
    "check_contents",
    "load_public_keys",
    "resolve_trust",
    "verify_entry",
    "verify_paths",
]
