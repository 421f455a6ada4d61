from __future__ import annotations

import hashlib
import hmac
import os

__all__ = ["hash_password", "verify_password"]

# scrypt cost parameters (16 MiB per hash)
_N = 2**14
_R = 8
_P = 1
_DKLEN = 32


def _derive(password: str, salt: bytes) -> bytes:
    return hashlib.scrypt(password.encode("utf-8"), salt=salt, n=_N, r=_R, p=_P, dklen=_DKLEN)


def hash_password(password: str, *, salt: bytes | None = None) -> str:
    """Return `scrypt$<salt hex>$<digest hex>` for storage."""
    salt = salt if salt is not None else os.urandom(16)
    return f"scrypt${salt.hex()}${_derive(password, salt).hex()}"


def verify_password(password: str, stored: str) -> bool:
    """Check a candidate password against a stored hash; unknown formats never match."""
    scheme, _, rest = stored.partition("$")
    salt_hex, _, digest_hex = rest.partition("$")
    if scheme != "scrypt" or not salt_hex or not digest_hex:
        return False
    try:
        salt = bytes.fromhex(salt_hex)
        expected = bytes.fromhex(digest_hex)
    except ValueError:
        return False
    return hmac.compare_digest(_derive(password, salt), expected)
