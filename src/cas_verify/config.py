from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from cas_store.protocol import TRUST_STORE_FILE

from .crypto import parse_public_keys


@dataclass(frozen=True)
class VerifyConfig:
    check_contents: bool = True
    check_trust: bool = True
    # 0 means "default": ultimate entries are trusted, others need one signature
    sigs_needed: int = 0
    substituters: tuple[str, ...] = ()
    # None means one worker per CPU
    jobs: int | None = None


def _load_json(path: Path):
    return json.loads(path.read_text(encoding="utf-8"))


def load_public_keys(
    store_root: Path,
    trust_store: Path | None = None,
    extra_keys: Iterable[str] = (),
) -> dict[str, bytes]:
    """Collect the trusted public keys for a run.

    Keys come from a trust-store JSON file (``{"trusted_public_keys": [...]}``)
    plus any given directly. Without an explicit file, ``trust_store.json`` at
    the store root is used when it exists.
    """
    if trust_store is None:
        default = Path(store_root) / TRUST_STORE_FILE
        trust_store = default if default.exists() else None

    trust = _load_json(trust_store) if trust_store is not None else {"trusted_public_keys": []}
    if not isinstance(trust, dict):
        raise ValueError(f"trust store '{trust_store}' must be a JSON object")
    keys = list(trust.get("trusted_public_keys", []))
    keys.extend(k for k in extra_keys if k)
    return parse_public_keys(keys)
