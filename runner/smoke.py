#!/usr/bin/env python3
"""Entry point running a single endpoint probe and reporting on it.

Steps:
- build an async client for the target origin (no timeout unless asked)
- run the selected probe; every step is logged as it happens
- emit a compact summary and an exit code
"""
from __future__ import annotations

import asyncio
import sys

from runner.cli import parse_args
from runner.client import make_client
from runner.logging_conf import get_logger, setup_logging
from runner.probes import DEFAULT_CREDENTIALS, PROBES
from runner.types import ProbeError, ProbeResult

setup_logging()
logger = get_logger("runner")


async def run_probe(
    name: str,
    *,
    base_url: str,
    timeout_s: float | None = None,
    origin: str | None = None,
    credentials: dict[str, str] | None = None,
) -> ProbeResult:
    if name not in PROBES:
        raise ProbeError(f"unknown probe: {name}")
    async with make_client(base_url, timeout=timeout_s) as client:
        if name == "cors" and origin:
            return await PROBES[name](client, origin)
        if name in ("login", "auth") and credentials:
            return await PROBES[name](client, credentials=credentials)
        return await PROBES[name](client)


def exit_code_for(result: ProbeResult, *, strict: bool) -> int:
    """Probes are informative by default; only `--strict` turns failure into 1."""
    if strict and not result.ok:
        return 1
    return 0


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    credentials = None
    if args.email or args.password:
        credentials = {
            "email": args.email or DEFAULT_CREDENTIALS["email"],
            "password": args.password or DEFAULT_CREDENTIALS["password"],
        }
    result = asyncio.run(
        run_probe(
            args.probe,
            base_url=args.base_url,
            timeout_s=args.timeout,
            origin=args.origin,
            credentials=credentials,
        )
    )
    logger.info("probe.summary", extra=result.summary())
    raise SystemExit(exit_code_for(result, strict=args.strict))


if __name__ == "__main__":
    main()
