from __future__ import annotations

import asyncio
import logging

import httpx
import pytest

from runner import smoke
from runner.cli import LOCAL_BASE_URL, REMOTE_BASE_URL, parse_args
from runner.smoke import exit_code_for, run_probe
from runner.types import ProbeError, ProbeResult, StepResult


def test_parse_args_defaults(monkeypatch):
    monkeypatch.delenv("BASE_URL", raising=False)
    monkeypatch.delenv("REMOTE_BASE_URL", raising=False)
    args = parse_args(["login"])
    assert args.base_url == LOCAL_BASE_URL
    assert args.timeout is None
    assert args.strict is False
    assert parse_args(["cors"]).base_url == REMOTE_BASE_URL


def test_parse_args_env_and_flags(monkeypatch):
    monkeypatch.setenv("BASE_URL", "http://127.0.0.1:9000")
    assert parse_args(["server"]).base_url == "http://127.0.0.1:9000"
    args = parse_args(["server", "--base-url", "http://x.test", "--strict", "--timeout", "2.5"])
    assert args.base_url == "http://x.test"
    assert args.strict is True
    assert args.timeout == 2.5


def test_parse_args_rejects_unknown_probe():
    with pytest.raises(SystemExit):
        parse_args(["nope"])


def test_exit_code_is_zero_unless_strict():
    failed = ProbeResult(probe="login", steps=[StepResult(name="login", ok=False)])
    passed = ProbeResult(probe="login", steps=[StepResult(name="login", ok=True)])
    assert exit_code_for(failed, strict=False) == 0
    assert exit_code_for(failed, strict=True) == 1
    assert exit_code_for(passed, strict=True) == 0


def test_empty_result_is_not_ok():
    assert not ProbeResult(probe="server").ok


def test_summary_lists_steps():
    result = ProbeResult(probe="server", steps=[StepResult(name="health", ok=False, error="boom")])
    summary = result.summary()
    assert summary["probe"] == "server"
    assert summary["ok"] is False
    assert summary["steps"] == [{"name": "health", "ok": False, "error": "boom"}]


def test_run_probe_unknown_name():
    with pytest.raises(ProbeError):
        asyncio.run(run_probe("nope", base_url="http://localhost:5000"))


def _patch_client(monkeypatch, handler):
    made: list[tuple[str, float | None]] = []

    def fake_make_client(base_url, *, timeout=None, **kwargs):
        made.append((base_url, timeout))
        return httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=base_url)

    monkeypatch.setattr(smoke, "make_client", fake_make_client)
    return made


def _down(request: httpx.Request) -> httpx.Response:
    return httpx.Response(503, json={"status": "down"})


def _summary(caplog) -> logging.LogRecord:
    records = [r for r in caplog.records if r.getMessage() == "probe.summary"]
    assert len(records) == 1
    return records[0]


def test_main_failed_probe_exits_zero_and_logs_summary(monkeypatch, caplog):
    caplog.set_level(logging.INFO, logger="runner")
    made = _patch_client(monkeypatch, _down)

    with pytest.raises(SystemExit) as exc:
        smoke.main(["server", "--base-url", "http://backend.test", "--timeout", "3"])

    assert exc.value.code == 0
    assert made == [("http://backend.test", 3.0)]
    record = _summary(caplog)
    assert record.probe == "server"
    assert record.ok is False
    assert [s["name"] for s in record.steps] == ["health", "api_test"]


def test_main_strict_exits_one_on_failure(monkeypatch, caplog):
    caplog.set_level(logging.INFO, logger="runner")
    _patch_client(monkeypatch, _down)

    with pytest.raises(SystemExit) as exc:
        smoke.main(["server", "--base-url", "http://backend.test", "--strict"])

    assert exc.value.code == 1
    assert _summary(caplog).ok is False


def test_main_strict_exits_zero_on_success(monkeypatch, caplog):
    caplog.set_level(logging.INFO, logger="runner")

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"token": "t"})

    _patch_client(monkeypatch, handler)

    with pytest.raises(SystemExit) as exc:
        smoke.main(["login", "--base-url", "http://backend.test", "--strict", "--email", "a@b.test"])

    assert exc.value.code == 0
    record = _summary(caplog)
    assert record.probe == "login"
    assert record.ok is True
