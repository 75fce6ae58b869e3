from __future__ import annotations

import json
import logging
import sys
import uuid
from typing import Any

import pytest

from tasktracker.observability import (
    ConsoleLogFormatter,
    JsonLogFormatter,
    Metrics,
    get_json_logger,
    get_request_context,
    use_request_context,
)


def _parse_json_lines(output: str) -> list[dict[str, Any]]:
    return [json.loads(line) for line in output.strip().splitlines() if line.strip()]


def _record(msg: str, **extra: Any) -> logging.LogRecord:
    record = logging.LogRecord("tasktracker.test", logging.INFO, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_logger_redacts_and_formats(capsys: Any, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOG_FORMAT", "json")
    logger = get_json_logger(f"obs-test-{uuid.uuid4()}")
    logger.setLevel(20)  # INFO
    logger.info(
        "hello",
        extra={
            "event": "task_created",
            "task_id": "t1",
            "attributes": {"password": "hunter2", "token": "XYZ", "safe": "ok"},
        },
    )

    lines = _parse_json_lines(capsys.readouterr().out)
    assert len(lines) == 1
    rec = lines[0]
    assert rec["msg"] == "hello"
    assert rec["level"] == "info"
    assert rec["event"] == "task_created"
    assert rec["task_id"] == "t1"
    assert rec["attributes"] == {"password": "[REDACTED]", "token": "[REDACTED]", "safe": "ok"}


def test_request_context_enriches_records() -> None:
    formatter = JsonLogFormatter()

    with use_request_context("req-1", "GET", "/tasks"):
        assert get_request_context() == {"request_id": "req-1", "method": "GET", "path": "/tasks"}
        inside = json.loads(formatter.format(_record("inside")))
    outside = json.loads(formatter.format(_record("outside")))

    assert inside["request_id"] == "req-1"
    assert inside["path"] == "/tasks"
    assert "request_id" not in outside
    assert get_request_context() is None


def test_exception_info_stays_on_one_line() -> None:
    formatter = JsonLogFormatter()
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        record = _record("failed")
        record.exc_info = sys.exc_info()

    out = formatter.format(record)

    assert "\n" not in out
    payload = json.loads(out)
    assert payload["err_type"] == "RuntimeError"
    assert payload["err"] == "boom"


def test_console_formatter_shortens_ids() -> None:
    line = ConsoleLogFormatter().format(
        _record("done", event="task_updated", task_id="0123456789abcdef", status_code=200)
    )

    assert "task_updated" in line
    assert "task=01234567" in line
    assert "status=200" in line
    assert line.endswith("- done")


def test_module_level_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    monkeypatch.setenv("LOG_MODULE_LEVELS", "obs-levels=DEBUG")

    debug_logger = get_json_logger(f"obs-levels.{uuid.uuid4()}")
    quiet_logger = get_json_logger(f"obs-quiet-{uuid.uuid4()}")

    assert debug_logger.level == logging.DEBUG
    assert quiet_logger.level == logging.WARNING


def test_metrics_counters_increment_and_snapshot() -> None:
    metrics = Metrics()
    metrics.increment("api_errors", {"path": "/tasks", "status": "500"}, 2)
    metrics.increment("api_errors", {"status": "500", "path": "/tasks"})

    assert metrics.value("api_errors", {"path": "/tasks", "status": "500"}) == 3
    snap = metrics.snapshot()
    entry = next(e for e in snap if e["name"] == "api_errors")
    assert entry["labels"] == {"path": "/tasks", "status": "500"}
    assert entry["value"] == 3
