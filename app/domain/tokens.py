from __future__ import annotations

import base64
import hashlib
import hmac
import json
import os

from pydantic import BaseModel, Field, ValidationError

__all__ = [
    "TOKEN_VERSION",
    "DEFAULT_TTL_MS",
    "TokenPayload",
    "TokenError",
    "UnsupportedTokenVersionError",
    "MalformedTokenError",
    "BadSignatureError",
    "ExpiredTokenError",
    "get_secret_from_env",
    "encode_auth_token",
    "decode_auth_token",
]

# Version your tokens so you can change their layout later without breaking old ones.
TOKEN_VERSION = 1
DEFAULT_TTL_MS = 7 * 24 * 60 * 60 * 1000


# ------------------------
# Errors
# ------------------------
class TokenError(ValueError):
    """Base class for token-related errors.

    The `code` attribute lets the API map errors to stable machine codes.
    """

    code: str = "invalid_token"


class UnsupportedTokenVersionError(TokenError):
    code = "unsupported_token_version"


class MalformedTokenError(TokenError):
    code = "malformed_token"


class BadSignatureError(TokenError):
    code = "bad_signature"


class ExpiredTokenError(TokenError):
    code = "token_expired"


# ------------------------
# Schema
# ------------------------
class TokenPayload(BaseModel):
    """Signed bearer token payload identifying a user.

    Fields are deliberately short to keep tokens compact when base64-encoded.
    """

    ver: int = Field(..., ge=1, le=1)  # token schema version
    uid: str  # user id
    iat: int  # issued-at epoch milliseconds
    exp: int  # expiry epoch milliseconds


# ------------------------
# Internals
# ------------------------

def _key(secret: str) -> bytes:
    """Stretch any secret into a 64-byte BLAKE2b key."""
    return hashlib.blake2b(secret.encode("utf-8")).digest()


def _sign(body: bytes, secret: str) -> bytes:
    return hashlib.blake2b(body, key=_key(secret), digest_size=16).digest()


def _b64(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("ascii")


def _unb64(part: str) -> bytes:
    """Strict base64url decode; only the exact encoding `_b64` produces is accepted."""
    raw = base64.b64decode(part.encode("ascii"), altchars=b"-_", validate=True)
    if _b64(raw) != part:
        raise ValueError("non-canonical base64url")
    return raw


def get_secret_from_env() -> str:
    """Read TOKEN_SECRET from environment.

    Falls back to a fixed development secret so local runs work out of the box.
    """
    return os.getenv("TOKEN_SECRET", "dev-secret")


# ------------------------
# Public encode/decode
# ------------------------

def encode_auth_token(
    *, user_id: str, issued_at_ms: int, secret: str, ttl_ms: int = DEFAULT_TTL_MS
) -> str:
    """Create a compact, URL-safe `<body>.<signature>` token for a user."""
    payload = TokenPayload(ver=TOKEN_VERSION, uid=user_id, iat=issued_at_ms, exp=issued_at_ms + ttl_ms)
    body = json.dumps(payload.model_dump(), separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    return f"{_b64(body)}.{_b64(_sign(body, secret))}"


def decode_auth_token(token: str, *, secret: str, now_ms: int) -> TokenPayload:
    """Verify and decode a token back into a `TokenPayload`.

    Raises a specific `TokenError` subclass if parsing/validation fails.
    """
    body_part, dot, sig_part = token.partition(".")
    if not dot or not body_part or not sig_part:
        raise MalformedTokenError("Token must be <body>.<signature>")

    try:
        body = _unb64(body_part)
        sig = _unb64(sig_part)
    except (ValueError, UnicodeEncodeError) as e:
        raise MalformedTokenError("Token is not valid base64url") from e

    if not hmac.compare_digest(sig, _sign(body, secret)):
        raise BadSignatureError("Token signature does not match")

    try:
        data = json.loads(body.decode("utf-8"))
    except ValueError as e:  # pragma: no cover - signature already vouches for the body
        raise MalformedTokenError("Token JSON is malformed") from e

    if isinstance(data, dict) and data.get("ver") != TOKEN_VERSION:
        raise UnsupportedTokenVersionError(f"Unsupported token version: {data.get('ver')}")

    try:
        payload = TokenPayload(**data)
    except (TypeError, ValidationError) as e:
        raise MalformedTokenError(f"Token schema invalid: {e}") from e

    if now_ms >= payload.exp:
        raise ExpiredTokenError("Token has expired")
    return payload
