"""Ed25519 signatures in ``<key-name>:<base64>`` form."""
from __future__ import annotations

import base64
import binascii
from typing import Iterable, Mapping

from nacl.signing import SigningKey, VerifyKey
from nacl.exceptions import BadSignatureError

PUBLIC_KEY_BYTES = 32
SIGNATURE_BYTES = 64


def _b64(raw: bytes) -> str:
    return base64.b64encode(raw).decode("ascii")


def verify_ed25519(public_key_bytes: bytes, message: bytes, signature: bytes) -> bool:
    vk = VerifyKey(public_key_bytes)
    try:
        vk.verify(message, signature)
        return True
    except BadSignatureError:
        return False


def parse_public_keys(keys: Iterable[str]) -> dict[str, bytes]:
    """Build the trusted key set from ``<name>:<base64 key>`` strings."""
    out: dict[str, bytes] = {}
    for key in keys:
        name, sep, encoded = key.strip().partition(":")
        if not sep or not name:
            raise ValueError(f"public key '{key}' lacks a key name")
        try:
            raw = base64.b64decode(encoded, validate=True)
        except binascii.Error as e:
            raise ValueError(f"public key '{name}' is not valid base64") from e
        if len(raw) != PUBLIC_KEY_BYTES:
            raise ValueError(f"public key '{name}' has length {len(raw)}, expected {PUBLIC_KEY_BYTES}")
        out[name] = raw
    return out


def verify_signature(public_keys: Mapping[str, bytes], message: bytes, sig: str) -> bool:
    """True if ``sig`` is a valid signature of ``message`` by a trusted key.

    Malformed signatures and unknown key names are not errors, they just
    don't count.
    """
    name, sep, encoded = sig.partition(":")
    if not sep:
        return False
    key = public_keys.get(name)
    if key is None:
        return False
    try:
        raw = base64.b64decode(encoded, validate=True)
    except binascii.Error:
        return False
    if len(raw) != SIGNATURE_BYTES:
        return False
    return verify_ed25519(key, message, raw)


def generate_keypair(name: str) -> tuple[str, str]:
    """Return ``(secret_key, public_key)`` strings for a fresh key named ``name``."""
    sk = SigningKey.generate()
    return f"{name}:{_b64(bytes(sk))}", f"{name}:{_b64(bytes(sk.verify_key))}"


def sign_detached(secret_key: str, message: bytes) -> str:
    name, sep, encoded = secret_key.partition(":")
    if not sep or not name:
        raise ValueError("secret key lacks a key name")
    sk = SigningKey(base64.b64decode(encoded, validate=True))
    return f"{name}:{_b64(sk.sign(message).signature)}"
