"""Tests for log formatting and rotation helpers."""

import json
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

import pytest

from kbmcp.log import ConsoleFormatter, JsonFormatter, _rotate_if_already_full

pytestmark = pytest.mark.unit


def _record(msg: str, **extra) -> logging.LogRecord:
    record = logging.LogRecord("kbmcp", logging.INFO, __file__, 1, msg, (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_merges_structured_payload() -> None:
    data = json.loads(JsonFormatter().format(_record("tool x", json={"tool": "x"})))
    assert data["tool"] == "x"
    assert data["message"] == "tool x"
    assert data["level"] == "INFO"
    assert "timestamp" in data


def test_json_formatter_wraps_non_mapping_payload() -> None:
    data = json.loads(JsonFormatter().format(_record("plain", json=[1, 2])))
    assert data["data"] == [1, 2]


def test_console_formatter_appends_event_payload() -> None:
    record = _record("PRELOAD_DONE", json={"event": "PRELOAD_DONE", "payload": {"requested": 1}})
    assert ConsoleFormatter().format(record) == 'INFO: PRELOAD_DONE {"requested": 1}'
    assert ConsoleFormatter().format(_record("hello")) == "INFO: hello"


def test_full_log_is_rotated_on_startup(tmp_path: Path) -> None:
    path = tmp_path / "kbmcp.log"
    path.write_text("x" * 20, encoding="utf-8")
    handler = RotatingFileHandler(path, maxBytes=10, backupCount=1, encoding="utf-8")
    try:
        _rotate_if_already_full(handler, path.stat().st_size)
    finally:
        handler.close()
    assert (tmp_path / "kbmcp.log.1").read_text(encoding="utf-8") == "x" * 20
    assert path.read_text(encoding="utf-8") == ""


def test_json_formatter_names_child_loggers() -> None:
    record = logging.LogRecord("kbmcp.backend.drive", logging.WARNING, __file__, 1, "slow", (), None)
    data = json.loads(JsonFormatter().format(record))
    assert data["logger"] == "kbmcp.backend.drive"
    assert "logger" not in json.loads(JsonFormatter().format(_record("root")))
