#!/usr/bin/env python3
"""MongoDB connectivity probe.

Steps:
- load `.env` and read MONGODB_URI
- connect once (no retry) and ping
- list collections; when `users` exists, count users and show one sample
- always close the client, whatever happened before
"""
from __future__ import annotations

import argparse
import asyncio
import os
import platform
import sys
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from motor.motor_asyncio import AsyncIOMotorClient

from runner.logging_conf import get_logger, setup_logging
from runner.users import USERS_COLLECTION, UserDocument, UserReader

setup_logging()
logger = get_logger("runner.db")

DEFAULT_DB_NAME = "test"
ENV_FILE = Path(__file__).resolve().parents[1] / "backend" / ".env"


@dataclass
class DbProbeResult:
    """What the probe managed to observe before stopping."""

    connected: bool = False
    collections: list[str] = field(default_factory=list)
    user_count: int | None = None
    sample_user: UserDocument | None = None
    error: str | None = None
    disconnected: bool = False

    @property
    def ok(self) -> bool:
        return self.connected and self.error is None

    def summary(self) -> dict[str, Any]:
        return {
            "component": "db_probe",
            "event": "summary",
            "ok": self.ok,
            "connected": self.connected,
            "collections": self.collections,
            "user_count": self.user_count,
            "sample_user": self.sample_user.model_dump() if self.sample_user else None,
            "error": self.error,
            "disconnected": self.disconnected,
        }


def redact_uri(uri: str) -> str:
    """Hide the password part of a mongodb:// URI for logging."""
    scheme, sep, rest = uri.partition("://")
    if not sep or "@" not in rest:
        return uri
    creds, _, host = rest.rpartition("@")
    user = creds.split(":", 1)[0]
    return f"{scheme}://{user}:***@{host}"


def db_env_keys(environ: dict[str, str] | None = None) -> list[str]:
    env = os.environ if environ is None else environ
    return sorted(k for k in env if "MONGO" in k or "DB" in k)


def _default_client_factory(uri: str) -> Any:
    return AsyncIOMotorClient(uri)


async def probe_database(
    uri: str | None, *, client_factory: Callable[[str], Any] = _default_client_factory
) -> DbProbeResult:
    """Run the connectivity checks against `uri`, never raising.

    The client is closed in a `finally` block so that a failure at any stage
    still disconnects.
    """
    result = DbProbeResult()
    if not uri:
        result.error = "MONGODB_URI is not set"
        logger.error("db.config_missing", extra={"event": "db_config_missing"})
        return result

    logger.info("db.connect", extra={"event": "db_connect", "uri": redact_uri(uri)})
    client = None
    try:
        client = client_factory(uri)
        await client.admin.command("ping")
        result.connected = True
        logger.info("db.connected", extra={"event": "db_connected"})

        db = client.get_default_database(default=DEFAULT_DB_NAME)
        result.collections = sorted(await db.list_collection_names())
        logger.info("db.collections", extra={"event": "db_collections", "collections": result.collections})

        if USERS_COLLECTION in result.collections:
            reader = UserReader(db[USERS_COLLECTION])
            result.user_count = await reader.count()
            logger.info("db.users.count", extra={"event": "db_users_count", "count": result.user_count})
            if result.user_count > 0:
                result.sample_user = await reader.sample()
                logger.info(
                    "db.users.sample",
                    extra={
                        "event": "db_users_sample",
                        "user": result.sample_user.model_dump() if result.sample_user else None,
                    },
                )
        else:
            logger.info(
                "db.users.missing",
                extra={"event": "db_users_missing", "hint": "create a user first"},
            )
    except Exception as e:
        result.error = f"{type(e).__name__}: {e}"
        logger.error("db.failed", extra={"event": "db_failed", "error": result.error})
    finally:
        if client is not None:
            client.close()
            result.disconnected = True
            logger.info("db.disconnected", extra={"event": "db_disconnected"})
    return result


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="MongoDB connectivity probe")
    parser.add_argument("--env-file", default=str(ENV_FILE))
    parser.add_argument("--uri", default=None, help="overrides MONGODB_URI")
    parser.add_argument("--strict", action="store_true", help="exit 1 when the probe failed")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    load_dotenv(args.env_file)
    logger.info(
        "db.start",
        extra={
            "event": "db_start",
            "python": platform.python_version(),
            "cwd": os.getcwd(),
            "env_keys": db_env_keys(),
        },
    )
    uri = args.uri or os.getenv("MONGODB_URI")
    result = asyncio.run(probe_database(uri, client_factory=_default_client_factory))
    logger.info("db.summary", extra=result.summary())
    raise SystemExit(1 if (args.strict and not result.ok) else 0)


if __name__ == "__main__":
    main()
