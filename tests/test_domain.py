from __future__ import annotations

import base64
import json

import pytest

from app.domain.passwords import hash_password, verify_password
from app.domain.tokens import (
    BadSignatureError,
    ExpiredTokenError,
    MalformedTokenError,
    UnsupportedTokenVersionError,
    _sign,
    decode_auth_token,
    encode_auth_token,
)

SECRET = "test-secret"


def test_token_decodes_with_same_secret():
    tok = encode_auth_token(user_id="u1", issued_at_ms=1_000, secret=SECRET, ttl_ms=500)
    payload = decode_auth_token(tok, secret=SECRET, now_ms=1_200)
    assert payload.uid == "u1"
    assert payload.iat == 1_000
    assert payload.exp == 1_500


def test_token_rejects_other_secret():
    tok = encode_auth_token(user_id="u1", issued_at_ms=0, secret=SECRET)
    with pytest.raises(BadSignatureError):
        decode_auth_token(tok, secret="other", now_ms=1)


def test_token_expiry():
    tok = encode_auth_token(user_id="u1", issued_at_ms=1_000, secret=SECRET, ttl_ms=500)
    with pytest.raises(ExpiredTokenError):
        decode_auth_token(tok, secret=SECRET, now_ms=1_500)


@pytest.mark.parametrize("token", ["", "no-dot", ".sig", "body.", "@@@.###"])
def test_token_malformed(token):
    with pytest.raises((MalformedTokenError, BadSignatureError)):
        decode_auth_token(token, secret=SECRET, now_ms=0)


def test_token_unsupported_version():
    body = json.dumps({"ver": 2, "uid": "u1", "iat": 0, "exp": 10}).encode()
    b64 = lambda raw: base64.urlsafe_b64encode(raw).decode()  # noqa: E731
    tok = f"{b64(body)}.{b64(_sign(body, SECRET))}"
    with pytest.raises(UnsupportedTokenVersionError):
        decode_auth_token(tok, secret=SECRET, now_ms=0)


def test_password_hash_verifies_and_is_salted():
    stored = hash_password("Test123456")
    assert stored.startswith("scrypt$")
    assert verify_password("Test123456", stored)
    assert not verify_password("Test1234567", stored)
    assert hash_password("Test123456") != stored


def test_verify_password_unknown_format():
    assert not verify_password("x", "plain-text")
    assert not verify_password("x", "scrypt$zz$zz")


@pytest.mark.parametrize("suffix", ["x", "AAAA", "!!", "=="])
def test_token_with_trailing_suffix_is_rejected(suffix):
    tok = encode_auth_token(user_id="u1", issued_at_ms=0, secret=SECRET)
    with pytest.raises(MalformedTokenError):
        decode_auth_token(tok + suffix, secret=SECRET, now_ms=1)


def test_token_with_non_canonical_body_is_rejected():
    tok = encode_auth_token(user_id="u1", issued_at_ms=0, secret=SECRET)
    body, _, sig = tok.partition(".")
    with pytest.raises(MalformedTokenError):
        decode_auth_token(f"{body.rstrip('=')}.{sig}", secret=SECRET, now_ms=1)
    with pytest.raises(MalformedTokenError):
        decode_auth_token(f"{body.replace('-', '+')}+.{sig}", secret=SECRET, now_ms=1)
