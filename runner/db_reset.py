#!/usr/bin/env python3
"""Wipe the DataViz collections (and optionally the uploads on disk).

Two entry points:
- `dataviz-clear-db`: empty the `files` and `visualizations` collections;
  exit 1 when the connection or the clear fails
- `dataviz-reset-files`: drop every file record and every physical upload so
  the database and the uploads directory agree again
"""
from __future__ import annotations

import argparse
import asyncio
import os
import sys
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from motor.motor_asyncio import AsyncIOMotorClient

from runner.db_probe import ENV_FILE, redact_uri
from runner.logging_conf import get_logger, setup_logging
from tools.uploads import UPLOADS_DIR

logger = get_logger("runner.db_reset")

DEFAULT_URI = "mongodb://localhost:27017/dataviz-pro"
DEFAULT_DB_NAME = "dataviz-pro"
FILES_COLLECTION = "files"
VISUALIZATIONS_COLLECTION = "visualizations"
CLEARED_COLLECTIONS = (FILES_COLLECTION, VISUALIZATIONS_COLLECTION)


@dataclass
class ClearResult:
    connected: bool = False
    deleted: dict[str, int] = field(default_factory=dict)
    error: str | None = None
    disconnected: bool = False

    @property
    def ok(self) -> bool:
        return self.connected and self.error is None


@dataclass
class ResetResult:
    """Outcome of a files reset; `failed` lists uploads that could not be unlinked."""

    uploads_created: bool = False
    physical_found: int = 0
    records_found: int = 0
    records_deleted: int = 0
    files_deleted: int = 0
    failed: list[str] = field(default_factory=list)
    error: str | None = None
    disconnected: bool = False


def _default_client_factory(uri: str) -> Any:
    return AsyncIOMotorClient(uri)


def _close(client: Any, result: ClearResult | ResetResult) -> None:
    client.close()
    result.disconnected = True
    logger.info("db.disconnected", extra={"event": "db_disconnected"})


async def clear_database(uri: str, *, client_factory: Callable[[str], Any] = _default_client_factory) -> ClearResult:
    """Delete every document in the files and visualizations collections."""
    result = ClearResult()
    logger.info("db.connect", extra={"event": "db_connect", "uri": redact_uri(uri)})
    client = None
    try:
        client = client_factory(uri)
        await client.admin.command("ping")
        result.connected = True
        logger.info("db.connected", extra={"event": "db_connected"})

        db = client.get_default_database(default=DEFAULT_DB_NAME)
        for name in CLEARED_COLLECTIONS:
            outcome = await db[name].delete_many({})
            result.deleted[name] = outcome.deleted_count
            logger.info(
                "db.clear.deleted",
                extra={"event": "db_clear_deleted", "collection": name, "count": outcome.deleted_count},
            )
        logger.info("db.clear.done", extra={"event": "db_clear_done", "deleted": result.deleted})
    except Exception as e:
        result.error = f"{type(e).__name__}: {e}"
        event = "db.clear.failed" if result.connected else "db.connect_failed"
        logger.error(event, extra={"event": event.replace(".", "_"), "error": result.error})
    finally:
        if client is not None:
            _close(client, result)
    return result


def _list_uploads(uploads_dir: Path, result: ResetResult) -> list[Path]:
    try:
        files = sorted(uploads_dir.iterdir())
    except OSError as e:
        logger.info(
            "reset.uploads_unreadable",
            extra={"event": "reset_uploads_unreadable", "path": str(uploads_dir), "error": str(e)},
        )
        try:
            uploads_dir.mkdir(parents=True, exist_ok=True)
            result.uploads_created = True
            logger.info("reset.uploads_created", extra={"event": "reset_uploads_created", "path": str(uploads_dir)})
        except OSError as mkdir_err:
            logger.error(
                "reset.uploads_create_failed",
                extra={"event": "reset_uploads_create_failed", "path": str(uploads_dir), "error": str(mkdir_err)},
            )
        return []
    result.physical_found = len(files)
    logger.info("reset.uploads_found", extra={"event": "reset_uploads_found", "count": len(files)})
    return files


async def reset_files(
    uri: str,
    uploads_dir: Path = UPLOADS_DIR,
    *,
    client_factory: Callable[[str], Any] = _default_client_factory,
) -> ResetResult:
    """Remove all file records, then every entry listed in `uploads_dir`.

    A failed unlink is logged and recorded; the remaining files are still
    attempted. The client is closed whatever happens.
    """
    result = ResetResult()
    client = None
    try:
        client = client_factory(uri)
        await client.admin.command("ping")
        logger.info("db.connected", extra={"event": "db_connected", "uri": redact_uri(uri)})

        physical = _list_uploads(uploads_dir, result)

        files = client.get_default_database(default=DEFAULT_DB_NAME)[FILES_COLLECTION]
        result.records_found = await files.count_documents({})
        logger.info("reset.records_found", extra={"event": "reset_records_found", "count": result.records_found})
        if result.records_found > 0:
            outcome = await files.delete_many({})
            result.records_deleted = outcome.deleted_count
            logger.info(
                "reset.records_deleted",
                extra={"event": "reset_records_deleted", "count": result.records_deleted},
            )

        for path in physical:
            try:
                path.unlink()
                result.files_deleted += 1
                logger.info("reset.file_deleted", extra={"event": "reset_file_deleted", "path": str(path)})
            except OSError as e:
                result.failed.append(str(path))
                logger.error(
                    "reset.file_delete_failed",
                    extra={"event": "reset_file_delete_failed", "path": str(path), "error": str(e)},
                )
        logger.info("reset.done", extra={"event": "reset_done"})
    except Exception as e:
        result.error = f"{type(e).__name__}: {e}"
        logger.error("reset.failed", extra={"event": "reset_failed", "error": result.error})
    finally:
        if client is not None:
            _close(client, result)
    return result


def _uri(args: argparse.Namespace) -> str:
    load_dotenv(args.env_file)
    return args.uri or os.getenv("MONGODB_URI") or DEFAULT_URI


def _parser(description: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=description)
    parser.add_argument("--env-file", default=str(ENV_FILE))
    parser.add_argument("--uri", default=None, help="overrides MONGODB_URI")
    return parser


def clear_main(argv: list[str] | None = None) -> None:
    setup_logging()
    args = _parser("Empty the files and visualizations collections").parse_args(
        argv if argv is not None else sys.argv[1:]
    )
    result = asyncio.run(clear_database(_uri(args), client_factory=_default_client_factory))
    raise SystemExit(0 if result.ok else 1)


def reset_main(argv: list[str] | None = None) -> None:
    setup_logging()
    parser = _parser("Delete all file records and uploaded files")
    parser.add_argument("--dir", default=str(UPLOADS_DIR))
    args = parser.parse_args(argv if argv is not None else sys.argv[1:])
    asyncio.run(reset_files(_uri(args), Path(args.dir), client_factory=_default_client_factory))


if __name__ == "__main__":
    clear_main()
