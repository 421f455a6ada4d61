from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any


@dataclass
class Exchange:
    """One HTTP request/response pair as observed by a probe."""

    method: str
    url: str
    status_code: int
    reason: str
    headers: dict[str, str]
    text: str
    data: Any = None
    parse_error: str | None = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def token(self) -> str | None:
        """Return the auth token from a parsed JSON body, if any."""
        if isinstance(self.data, dict):
            tok = self.data.get("token")
            if isinstance(tok, str) and tok:
                return tok
        return None


@dataclass
class StepResult:
    """Outcome of a single probe step (one request plus its checks)."""

    name: str
    ok: bool
    exchange: Exchange | None = None
    error: str | None = None
    notes: dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"name": self.name, "ok": self.ok}
        if self.exchange is not None:
            out["status_code"] = self.exchange.status_code
        if self.error:
            out["error"] = self.error
        if self.notes:
            out["notes"] = self.notes
        return out


@dataclass
class ProbeResult:
    """Structured outcome of a probe run."""

    probe: str
    steps: list[StepResult] = field(default_factory=list)
    started_at_ms: int = field(default_factory=lambda: now_ms())

    @property
    def ok(self) -> bool:
        return bool(self.steps) and all(s.ok for s in self.steps)

    def step(self, name: str) -> StepResult | None:
        for s in self.steps:
            if s.name == name:
                return s
        return None

    def summary(self) -> dict[str, Any]:
        return {
            "component": "runner",
            "event": "summary",
            "probe": self.probe,
            "ok": self.ok,
            "elapsed_ms": now_ms() - self.started_at_ms,
            "steps": [s.as_dict() for s in self.steps],
        }


class ProbeError(RuntimeError):
    """Raised when a probe cannot be set up (e.g., unknown probe name)."""


def now_ms() -> int:
    """Return current time in epoch milliseconds."""
    return int(time.time() * 1000)
