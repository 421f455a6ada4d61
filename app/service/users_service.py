from __future__ import annotations

import re
import time
from dataclasses import dataclass, field
from uuid import uuid4

from ..domain.passwords import hash_password, verify_password
from ..domain.tokens import (
    TokenError,
    decode_auth_token,
    encode_auth_token,
    get_secret_from_env,
)
from ..logging_conf import get_logger

logger = get_logger("service.users")

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[A-Za-z]{2,}$")
MIN_USERNAME = 3
MIN_PASSWORD = 6


def now_ms() -> int:
    """Return current time in epoch milliseconds."""
    return int(time.time() * 1000)


# ------------------------
# Errors
# ------------------------
class UserServiceError(ValueError):
    code: str = "bad_request"


class ValidationFailed(UserServiceError):
    code = "validation_error"


class UserExistsError(UserServiceError):
    code = "user_exists"


class InvalidCredentialsError(UserServiceError):
    code = "invalid_credentials"


class AuthenticationError(UserServiceError):
    code = "auth_failed"


# ------------------------
# Storage
# ------------------------
@dataclass
class StoredUser:
    id: str
    username: str
    email: str
    password_hash: str
    role: str = "user"
    is_active: bool = True
    created_at: int = field(default_factory=now_ms)


class UserStore:
    """In-memory user table; lost on restart."""

    def __init__(self) -> None:
        self._by_id: dict[str, StoredUser] = {}

    def find(self, *, email: str | None = None, username: str | None = None) -> StoredUser | None:
        for u in self._by_id.values():
            if (email is not None and u.email == email) or (username is not None and u.username == username):
                return u
        return None

    def get(self, user_id: str) -> StoredUser | None:
        return self._by_id.get(user_id)

    def add(self, user: StoredUser) -> None:
        self._by_id[user.id] = user

    def clear(self) -> None:
        self._by_id.clear()

    def __len__(self) -> int:
        return len(self._by_id)


store = UserStore()


def public_user(user: StoredUser) -> dict:
    """Short user view returned alongside tokens."""
    return {"id": user.id, "username": user.username, "email": user.email, "role": user.role}


def profile_view(user: StoredUser) -> dict:
    """Full stored user minus the password hash."""
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "role": user.role,
        "is_active": user.is_active,
        "created_at": user.created_at,
    }


def _issue(user: StoredUser) -> dict:
    token = encode_auth_token(user_id=user.id, issued_at_ms=now_ms(), secret=get_secret_from_env())
    return {"user": public_user(user), "token": token}


# ------------------------
# Use-cases
# ------------------------

def register(*, username: str | None, email: str | None, password: str | None) -> dict:
    """Create a user and return it with a fresh token."""
    username = (username or "").strip()
    email = (email or "").strip().lower()
    password = password or ""
    if len(username) < MIN_USERNAME:
        raise ValidationFailed(f"Username must be at least {MIN_USERNAME} characters long")
    if not _EMAIL_RE.match(email):
        raise ValidationFailed("Please provide a valid email")
    if len(password) < MIN_PASSWORD:
        raise ValidationFailed(f"Password must be at least {MIN_PASSWORD} characters long")
    if store.find(email=email, username=username) is not None:
        raise UserExistsError("User with this email or username already exists")

    user = StoredUser(id=uuid4().hex, username=username, email=email, password_hash=hash_password(password))
    store.add(user)
    logger.info("user.register", extra={"event": "user_register", "user_id": user.id})
    return _issue(user)


def login(*, email: str | None, password: str | None) -> dict:
    """Check credentials and return the user with a fresh token."""
    user = store.find(email=(email or "").strip().lower())
    if user is None or not user.is_active or not verify_password(password or "", user.password_hash):
        logger.info("user.login_failed", extra={"event": "user_login_failed"})
        raise InvalidCredentialsError("Invalid credentials")
    logger.info("user.login", extra={"event": "user_login", "user_id": user.id})
    return _issue(user)


def profile(*, token: str | None) -> dict:
    """Resolve a bearer token to the stored user's profile."""
    if not token:
        raise AuthenticationError("Authentication required. Please login.")
    try:
        payload = decode_auth_token(token, secret=get_secret_from_env(), now_ms=now_ms())
    except TokenError as e:
        logger.info("user.token_rejected", extra={"event": "user_token_rejected", "code": e.code})
        raise AuthenticationError(f"Invalid authentication token: {e}") from e
    user = store.get(payload.uid)
    if user is None:
        raise AuthenticationError("User not found. Please login again.")
    return profile_view(user)
