from __future__ import annotations

import json
from typing import Any

import httpx

from runner.logging_conf import get_logger
from runner.types import Exchange

logger = get_logger("runner.client")

JSON_HEADERS = {"Content-Type": "application/json", "Accept": "application/json"}


def make_client(base_url: str, *, timeout: float | None = None, **kwargs: Any) -> httpx.AsyncClient:
    """Build the async client used by every probe.

    `timeout=None` disables timeouts entirely, so a hung server blocks the probe.
    """
    return httpx.AsyncClient(base_url=base_url, timeout=timeout, **kwargs)


def parse_body(text: str) -> tuple[Any, str | None]:
    """Parse a raw response body as JSON, returning (data, error)."""
    try:
        return json.loads(text), None
    except ValueError as e:
        return None, str(e)


async def send(
    client: httpx.AsyncClient,
    method: str,
    path: str,
    *,
    json_body: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> Exchange:
    """Issue one request and capture everything a human would want to read.

    - Never raises for HTTP error statuses; the caller decides what "ok" means
    - Transport errors (connection refused, timeouts) propagate as httpx.HTTPError
    - Logs status, headers and raw body at INFO; a non-JSON body is a WARNING
    """
    logger.info(
        "http.request",
        extra={"event": "http_request", "method": method, "base_url": str(client.base_url), "path": path},
    )
    r = await client.request(method, path, json=json_body, headers=headers)
    text = r.text
    data, parse_error = parse_body(text)
    ex = Exchange(
        method=method,
        url=str(r.request.url),
        status_code=r.status_code,
        reason=r.reason_phrase,
        headers=dict(r.headers),
        text=text,
        data=data,
        parse_error=parse_error,
    )
    logger.info(
        "http.response",
        extra={
            "event": "http_response",
            "method": method,
            "url": ex.url,
            "status_code": ex.status_code,
            "reason": ex.reason,
            "headers": ex.headers,
            "body": text,
        },
    )
    if parse_error is not None:
        logger.warning(
            "http.parse_error",
            extra={"event": "http_parse_error", "url": ex.url, "error": parse_error},
        )
    return ex
