"""Logging configuration for the users API stub.

Same JSON-line format as the probes; additionally routes the uvicorn loggers
through the root handler. Idempotent: repeated calls never duplicate handlers.
"""
from __future__ import annotations

import logging

from runner.logging_conf import _DEFAULT_LEVEL, get_logger
from runner.logging_conf import setup_logging as _setup_root

__all__ = ["get_logger", "setup_logging"]


def setup_logging(level: str | int = _DEFAULT_LEVEL) -> None:
    """Configure root and uvicorn loggers for JSON output."""
    _setup_root(level)
    root_level = logging.getLogger().level
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        lg = logging.getLogger(name)
        lg.setLevel(root_level)
        # Inherit root handler; ensure no duplicate handlers are attached.
        lg.propagate = True
        for h in list(lg.handlers):
            lg.removeHandler(h)
