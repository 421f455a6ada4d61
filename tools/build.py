#!/usr/bin/env python3
"""Production build wrapper for the React frontend.

Locates the bundler's build entry script inside `frontend/node_modules` and
runs it with node, forwarding stdio and a production environment. The child's
exit code becomes ours.
"""
from __future__ import annotations

import argparse
import json
import os
import shutil
import subprocess
import sys
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

from runner.logging_conf import get_logger, setup_logging
from tools import ToolError

logger = get_logger("tools.build")

ENTRY_SCRIPT = Path("node_modules") / "react-scripts" / "scripts" / "build.js"

PRODUCTION_ENV = {
    "NODE_ENV": "production",
    "CI": "false",
    "DISABLE_ESLINT_PLUGIN": "true",
    "SKIP_PREFLIGHT_CHECK": "true",
}


class BuildScriptMissing(ToolError):
    """Raised when the bundler's build entry script cannot be found."""


def resolve_frontend_dir(cwd: Path) -> Path:
    """Return `cwd` when it already is the frontend directory, else `cwd/frontend`."""
    return cwd if cwd.name == "frontend" else cwd / "frontend"


@dataclass
class BuildConfig:
    """Everything the child build process needs; nothing is read from globals."""

    frontend_dir: Path
    entry_script: Path = ENTRY_SCRIPT
    node: str = "node"
    extra_env: dict[str, str] = field(default_factory=dict)

    @property
    def entry_path(self) -> Path:
        return self.frontend_dir / self.entry_script

    def env(self, base: dict[str, str] | None = None) -> dict[str, str]:
        """Child environment: `base` (default os.environ) plus production settings."""
        out = dict(os.environ if base is None else base)
        out.update(PRODUCTION_ENV)
        out.update(self.extra_env)
        return out

    def command(self) -> list[str]:
        return [self.node, str(self.entry_path)]

    def require_entry(self) -> Path:
        if not self.entry_path.is_file():
            raise BuildScriptMissing(f"build script not found: {self.entry_path}")
        return self.entry_path


def run_build(config: BuildConfig, *, spawn: Callable[..., int] | None = None) -> int:
    """Spawn the build and return its exit code.

    - Missing entry script: log and return 1 without spawning
    - Spawn failure (node missing, permissions): log and return 1
    - No timeout and no output capture; stdio is inherited
    """
    spawn = spawn or subprocess.call
    try:
        entry = config.require_entry()
    except BuildScriptMissing as e:
        logger.error("build.missing_script", extra={"event": "build_missing_script", "error": str(e)})
        return 1

    logger.info(
        "build.start",
        extra={"event": "build_start", "cwd": str(config.frontend_dir), "entry": str(entry)},
    )
    try:
        code = spawn(config.command(), cwd=str(config.frontend_dir), env=config.env())
    except OSError as e:
        logger.error("build.spawn_failed", extra={"event": "build_spawn_failed", "error": str(e)})
        return 1

    if code != 0:
        logger.error("build.failed", extra={"event": "build_failed", "exit_code": code})
    else:
        logger.info("build.done", extra={"event": "build_done"})
    return code


def publish_build(frontend_build: Path, root_build: Path, *, environment: str = "production") -> list[str]:
    """Copy the frontend build into the root build dir and stamp it.

    Returns the entry names of the root build directory afterwards.
    """
    if not frontend_build.is_dir():
        logger.warning(
            "build.publish_missing",
            extra={"event": "build_publish_missing", "path": str(frontend_build)},
        )
        frontend_build.mkdir(parents=True, exist_ok=True)
    root_build.mkdir(parents=True, exist_ok=True)
    shutil.copytree(frontend_build, root_build, dirs_exist_ok=True)
    info = {"buildTime": datetime.now(UTC).isoformat(), "environment": environment}
    (root_build / "build-info.json").write_text(json.dumps(info, indent=2), encoding="utf-8")
    names = sorted(p.name for p in root_build.iterdir())
    logger.info(
        "build.published",
        extra={"event": "build_published", "path": str(root_build), "entries": names},
    )
    return names


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Build the frontend for production")
    parser.add_argument("--node", default="node")
    parser.add_argument(
        "--publish", action="store_true", help="copy frontend/build to ./build after a successful build"
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    setup_logging()
    args = parse_args(argv if argv is not None else sys.argv[1:])
    frontend_dir = resolve_frontend_dir(Path.cwd())
    config = BuildConfig(frontend_dir=frontend_dir, node=args.node)
    code = run_build(config)
    if code != 0:
        raise SystemExit(code)
    if args.publish:
        publish_build(frontend_dir / "build", frontend_dir.parent / "build", environment=PRODUCTION_ENV["NODE_ENV"])
    raise SystemExit(0)


if __name__ == "__main__":
    main()
