"""Endpoint probes for the users API.

Each probe issues a short, fixed sequence of requests and returns a
`ProbeResult` instead of raising: transport and parse failures are caught per
step, logged, and recorded so that the remaining steps still run.
"""
from __future__ import annotations

import random
import time
from collections.abc import Awaitable
from typing import Any

import httpx

from runner.client import JSON_HEADERS, send
from runner.logging_conf import get_logger
from runner.types import Exchange, ProbeResult, StepResult

logger = get_logger("runner.probes")

LOGIN_PATH = "/api/users/login"
REGISTER_PATH = "/api/users/register"
PROFILE_PATH = "/api/users/profile"
HEALTH_PATH = "/health"
API_TEST_PATH = "/api/test"

DEFAULT_CREDENTIALS = {"email": "aadi@gmail.com", "password": "password123"}
TEST_PASSWORD = "Test123456"
DEFAULT_ORIGIN = "https://datavizpro-kn4junf9m-aaditya-desais-projects.vercel.app"


def make_test_user(rng: random.Random | None = None) -> dict[str, str]:
    """Return a pseudo-unique user built from a random suffix in [0, 10000)."""
    n = (rng or random).randrange(10000)
    return {
        "username": f"testuser{n}",
        "email": f"testuser{n}@example.com",
        "password": TEST_PASSWORD,
    }


def make_cors_user(stamp_ms: int | None = None) -> dict[str, str]:
    """Return a user whose name carries a millisecond timestamp."""
    stamp = stamp_ms if stamp_ms is not None else int(time.time() * 1000)
    username = f"test_user_{stamp}"
    return {"username": username, "email": f"{username}@example.com", "password": TEST_PASSWORD}


def header(ex: Exchange, name: str) -> str | None:
    """Case-insensitive header lookup on a captured exchange."""
    wanted = name.lower()
    for key, value in ex.headers.items():
        if key.lower() == wanted:
            return value
    return None


async def _run_step(name: str, call: Awaitable[Exchange]) -> tuple[StepResult, Exchange | None]:
    """Await one request, turning transport failures into a failed step."""
    try:
        ex = await call
    except httpx.HTTPError as e:
        logger.error(
            "probe.step_error",
            extra={"event": "probe_step_error", "step": name, "error": f"{type(e).__name__}: {e}"},
        )
        return StepResult(name=name, ok=False, error=f"{type(e).__name__}: {e}"), None
    return StepResult(name=name, ok=ex.ok, exchange=ex), ex


def _expect_token(step: StepResult, ex: Exchange) -> StepResult:
    """Mark a step ok only if the parsed body carries a non-empty token."""
    if ex.parse_error is not None:
        step.ok = False
        step.error = f"response is not JSON: {ex.parse_error}"
    elif ex.token is None:
        step.ok = False
        step.error = "no token in response"
    else:
        step.notes["token"] = True
    logger.info(
        "probe.token",
        extra={"event": "probe_token", "step": step.name, "token_received": ex.token is not None},
    )
    return step


def _expect_json(step: StepResult, ex: Exchange) -> StepResult:
    if not ex.ok:
        step.error = f"status {ex.status_code} {ex.reason}".strip()
    elif ex.parse_error is not None:
        step.ok = False
        step.error = f"response is not JSON: {ex.parse_error}"
    return step


async def _login(client: httpx.AsyncClient, name: str, creds: dict[str, str]) -> StepResult:
    step, ex = await _run_step(
        name,
        send(
            client,
            "POST",
            LOGIN_PATH,
            json_body={"email": creds["email"], "password": creds["password"]},
            headers=JSON_HEADERS,
        ),
    )
    return _expect_token(step, ex) if ex is not None else step


async def _register(
    client: httpx.AsyncClient, name: str, user: dict[str, str], headers: dict[str, str] | None = None
) -> StepResult:
    step, ex = await _run_step(
        name,
        send(client, "POST", REGISTER_PATH, json_body=user, headers=headers or JSON_HEADERS),
    )
    return _expect_token(step, ex) if ex is not None else step


async def _profile(
    client: httpx.AsyncClient, name: str, token: str, extra_headers: dict[str, str] | None = None
) -> StepResult:
    headers = {"Authorization": f"Bearer {token}", "Accept": "application/json"}
    headers.update(extra_headers or {})
    step, ex = await _run_step(name, send(client, "GET", PROFILE_PATH, headers=headers))
    return _expect_json(step, ex) if ex is not None else step


def _token_of(step: StepResult) -> str | None:
    """Token from the response body, whatever the status code."""
    return step.exchange.token if step.exchange is not None else None


async def login_probe(
    client: httpx.AsyncClient, credentials: dict[str, str] | None = None
) -> ProbeResult:
    """POST known credentials to the login endpoint and report on the token."""
    creds = dict(credentials or DEFAULT_CREDENTIALS)
    result = ProbeResult(probe="login")
    logger.info("probe.login.start", extra={"event": "probe_start", "probe": "login", "email": creds["email"]})
    result.steps.append(await _login(client, "login", creds))
    return result


async def registration_probe(
    client: httpx.AsyncClient, rng: random.Random | None = None, user: dict[str, str] | None = None
) -> ProbeResult:
    """Register a fresh user, then log in with the same credentials.

    The login step only runs when registration returned a token.
    """
    user = user or make_test_user(rng)
    result = ProbeResult(probe="register")
    logger.info(
        "probe.register.start",
        extra={"event": "probe_start", "probe": "register", "username": user["username"], "email": user["email"]},
    )
    reg = await _register(client, "register", user)
    result.steps.append(reg)
    if _token_of(reg) is None:
        return result
    result.steps.append(await _login(client, "login_new_user", user))
    return result


async def server_probe(client: httpx.AsyncClient) -> ProbeResult:
    """GET the health and API test endpoints, independently of each other."""
    result = ProbeResult(probe="server")
    for name, path in (("health", HEALTH_PATH), ("api_test", API_TEST_PATH)):
        step, ex = await _run_step(name, send(client, "GET", path, headers={"Accept": "application/json"}))
        result.steps.append(_expect_json(step, ex) if ex is not None else step)
    return result


def _cors_notes(step: StepResult, credentials: str) -> StepResult:
    step.notes["credentials"] = credentials
    if step.exchange is not None:
        step.notes["allow_origin"] = header(step.exchange, "access-control-allow-origin")
        step.notes["allow_credentials"] = header(step.exchange, "access-control-allow-credentials")
    return step


async def cors_probe(
    client: httpx.AsyncClient, origin: str = DEFAULT_ORIGIN, stamp_ms: int | None = None
) -> ProbeResult:
    """Exercise the deployed backend the way a browser on `origin` would.

    - Registration with credentials included (cookie jar kept)
    - Profile fetch with the returned bearer token, when there is one
    - A second registration without credentials, for comparison
    """
    user = make_cors_user(stamp_ms)
    result = ProbeResult(probe="cors")
    origin_headers = {"Content-Type": "application/json", "Origin": origin}
    logger.info(
        "probe.cors.start",
        extra={"event": "probe_start", "probe": "cors", "origin": origin, "username": user["username"]},
    )

    reg = _cors_notes(await _register(client, "register_with_credentials", user, origin_headers), "include")
    result.steps.append(reg)
    token = _token_of(reg)
    if token is not None:
        prof = await _profile(client, "profile", token, {"Origin": origin})
        result.steps.append(_cors_notes(prof, "include"))

    client.cookies.clear()
    second = {
        "username": f"{user['username']}_2",
        "email": f"{user['username']}_2@example.com",
        "password": user["password"],
    }
    step, ex = await _run_step(
        "register_without_credentials",
        send(client, "POST", REGISTER_PATH, json_body=second, headers=origin_headers),
    )
    if ex is not None:
        step = _expect_json(step, ex)
    result.steps.append(_cors_notes(step, "omit"))
    return result


async def auth_probe(
    client: httpx.AsyncClient,
    rng: random.Random | None = None,
    credentials: dict[str, str] | None = None,
) -> ProbeResult:
    """Login with known credentials, register a new user, fetch its profile."""
    result = ProbeResult(probe="auth")
    result.steps.append(await _login(client, "login", dict(credentials or DEFAULT_CREDENTIALS)))
    reg = await _register(client, "register", make_test_user(rng))
    result.steps.append(reg)
    token = _token_of(reg)
    if token is not None:
        result.steps.append(await _profile(client, "profile", token))
    return result


PROBES: dict[str, Any] = {
    "login": login_probe,
    "register": registration_probe,
    "server": server_probe,
    "cors": cors_probe,
    "auth": auth_probe,
}
