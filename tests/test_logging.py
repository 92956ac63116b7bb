"""Tests for structured logging functionality."""

from __future__ import annotations

import json
import logging
import logging.handlers

import pytest

from carebudget.config import BaseConfig
from carebudget.logging_config import JSONFormatter, get_logger, setup_logging


@pytest.fixture
def config(tmp_path, monkeypatch: pytest.MonkeyPatch) -> BaseConfig:
    monkeypatch.setenv("CAREBUDGET_DATA_DIR", str(tmp_path))
    return BaseConfig()


def test_json_formatter_includes_extra_fields():
    """Extra fields passed to the logger end up under "extra"."""
    formatter = JSONFormatter()
    record = logging.LogRecord(
        name="carebudget.ledger",
        level=logging.INFO,
        pathname="ledger_service.py",
        lineno=42,
        msg="Purchase recorded",
        args=(),
        exc_info=None,
    )
    record.client_id = "a" * 24
    record.year = 2025

    log_data = json.loads(formatter.format(record))

    assert log_data["level"] == "INFO"
    assert log_data["logger"] == "carebudget.ledger"
    assert log_data["message"] == "Purchase recorded"
    assert log_data["line"] == 42
    assert log_data["extra"] == {"client_id": "a" * 24, "year": 2025}
    assert "timestamp" in log_data


def test_json_formatter_with_exception():
    formatter = JSONFormatter()
    try:
        raise ValueError("Test error")
    except ValueError:
        import sys

        exc_info = sys.exc_info()

    record = logging.LogRecord(
        name="test.logger",
        level=logging.ERROR,
        pathname="test.py",
        lineno=7,
        msg="Error occurred",
        args=(),
        exc_info=exc_info,
    )

    log_data = json.loads(formatter.format(record))

    assert log_data["exception"]["type"] == "ValueError"
    assert "Test error" in log_data["exception"]["message"]
    assert log_data["exception"]["traceback"]


def test_setup_logging(config, tmp_path):
    """Logging setup creates a rotating JSON log file under the data dir."""
    logger = setup_logging(config)

    assert logger.name == "carebudget"
    assert logger.level == logging.INFO
    assert len(logger.handlers) == 2

    log_file = tmp_path / "logs" / "carebudget.log"
    assert log_file.exists()

    get_logger("tests").warning("Something odd", extra={"client_id": "b" * 24})
    for handler in logger.handlers:
        handler.flush()

    lines = [line for line in log_file.read_text(encoding="utf-8").splitlines() if line.strip()]
    entries = [json.loads(line) for line in lines]
    assert entries[0]["message"] == "Logging initialized"
    assert entries[-1]["message"] == "Something odd"
    assert entries[-1]["extra"]["client_id"] == "b" * 24


def test_setup_logging_twice_does_not_duplicate_handlers(config):
    setup_logging(config)
    logger = setup_logging(config)
    assert len(logger.handlers) == 2


def test_get_logger():
    assert get_logger("budget_store").name == "carebudget.budget_store"
    assert get_logger("ledger") is logging.getLogger("carebudget.ledger")


@pytest.mark.parametrize("dev_mode", [True, False])
def test_console_level_follows_dev_mode(config, dev_mode):
    config.DEV_MODE = dev_mode
    logger = setup_logging(config)

    console = [
        handler
        for handler in logger.handlers
        if isinstance(handler, logging.StreamHandler)
        and not isinstance(handler, logging.handlers.RotatingFileHandler)
    ]

    assert len(console) == 1
    assert console[0].level == (logging.INFO if dev_mode else logging.WARNING)
