"""Housekeeping scripts: upload cleaning, build directory cleanup, frontend build."""
from pathlib import Path

# Repository root (the directory holding `backend/` and `frontend/`).
ROOT = Path(__file__).resolve().parents[1]


class ToolError(RuntimeError):
    """Base error for housekeeping scripts that cannot proceed."""
