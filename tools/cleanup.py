#!/usr/bin/env python3
"""Empty test data and build output directories, keeping the directories."""
from __future__ import annotations

import argparse
import shutil
import sys
from pathlib import Path

from runner.logging_conf import get_logger, setup_logging
from tools import ROOT

logger = get_logger("tools.cleanup")

TARGETS = (
    Path("test_data"),
    Path("testing_data"),
    Path("build"),
    Path("frontend") / "build",
)


def empty_dir(path: Path) -> None:
    """Remove everything inside `path` but leave `path` itself in place."""
    for child in path.iterdir():
        if child.is_dir() and not child.is_symlink():
            shutil.rmtree(child)
        else:
            child.unlink()


def cleanup(root: Path = ROOT, targets: tuple[Path, ...] = TARGETS) -> list[Path]:
    """Empty each target that exists under `root`; missing ones stay missing."""
    logger.info("cleanup.start", extra={"event": "cleanup_start", "root": str(root)})
    cleaned: list[Path] = []
    for rel in targets:
        path = root / rel
        if not path.is_dir():
            continue
        logger.info("cleanup.dir", extra={"event": "cleanup_dir", "path": str(path)})
        empty_dir(path)
        cleaned.append(path)
    logger.info("cleanup.done", extra={"event": "cleanup_done", "cleaned": [str(p) for p in cleaned]})
    return cleaned


def main(argv: list[str] | None = None) -> None:
    setup_logging()
    parser = argparse.ArgumentParser(description="Empty test data and build directories")
    parser.add_argument("--root", default=str(ROOT))
    args = parser.parse_args(argv if argv is not None else sys.argv[1:])
    cleanup(Path(args.root))


if __name__ == "__main__":
    main()
