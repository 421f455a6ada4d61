#!/usr/bin/env python3
"""Delete every regular file directly inside the backend uploads directory.

Subdirectories are skipped (no recursion). If the directory is missing it is
created instead, so the backend finds it on next start.
"""
from __future__ import annotations

import argparse
import stat
import sys
from dataclasses import dataclass
from pathlib import Path

from runner.logging_conf import get_logger, setup_logging
from tools import ROOT

logger = get_logger("tools.uploads")

UPLOADS_DIR = ROOT / "backend" / "uploads"


@dataclass
class CleanSummary:
    """Counts reported after a cleaning pass."""

    path: Path
    existed: bool
    found: int = 0
    deleted: int = 0
    skipped: int = 0
    failed: int = 0
    created: bool = False


def clean_uploads(uploads_dir: Path = UPLOADS_DIR) -> CleanSummary:
    """Unlink regular files in `uploads_dir`, tolerating per-entry failures."""
    logger.info("uploads.scan", extra={"event": "uploads_scan", "path": str(uploads_dir)})
    summary = CleanSummary(path=uploads_dir, existed=uploads_dir.exists())

    if summary.existed:
        try:
            entries = sorted(uploads_dir.iterdir())
        except OSError as e:
            logger.error(
                "uploads.list_failed",
                extra={"event": "uploads_list_failed", "path": str(uploads_dir), "error": str(e)},
            )
            entries = []
        summary.found = len(entries)
        for entry in entries:
            try:
                mode = entry.stat().st_mode
                if stat.S_ISREG(mode):
                    entry.unlink()
                    summary.deleted += 1
                    logger.info("uploads.deleted", extra={"event": "uploads_deleted", "path": str(entry)})
                else:
                    summary.skipped += 1
                    logger.info("uploads.skipped", extra={"event": "uploads_skipped", "path": str(entry)})
            except OSError as e:
                summary.failed += 1
                logger.error(
                    "uploads.delete_failed",
                    extra={"event": "uploads_delete_failed", "path": str(entry), "error": str(e)},
                )
        logger.info(
            "uploads.summary",
            extra={
                "event": "uploads_summary",
                "found": summary.found,
                "deleted": summary.deleted,
                "skipped": summary.skipped,
                "failed": summary.failed,
            },
        )
    else:
        logger.info("uploads.missing", extra={"event": "uploads_missing", "path": str(uploads_dir)})
        try:
            uploads_dir.mkdir(parents=True, exist_ok=True)
            summary.created = True
            logger.info("uploads.created", extra={"event": "uploads_created", "path": str(uploads_dir)})
        except OSError as e:
            logger.error(
                "uploads.create_failed",
                extra={"event": "uploads_create_failed", "path": str(uploads_dir), "error": str(e)},
            )
    return summary


def main(argv: list[str] | None = None) -> None:
    setup_logging()
    parser = argparse.ArgumentParser(description="Delete uploaded files")
    parser.add_argument("--dir", default=str(UPLOADS_DIR))
    args = parser.parse_args(argv if argv is not None else sys.argv[1:])
    clean_uploads(Path(args.dir))


if __name__ == "__main__":
    main()
