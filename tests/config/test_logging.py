"""Tests for logging setup."""

import json
import logging

import pytest

from avalanche_report.config.logging import JsonFormatter
from avalanche_report.config.logging import setup_logging
from avalanche_report.config.types import LoggingOptions


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in root.handlers:
        handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)

def test_json_formatter():
    record = logging.LogRecord("avalanche_report", logging.WARNING, __file__, 1, "Hello %s", ("there",), None)
    record.extra_fields = {"station": "gudauri"}

    data = json.loads(JsonFormatter(include_timestamp=False).format(record))

    assert data == {
        "level": "WARNING",
        "logger": "avalanche_report",
        "message": "Hello there",
        "station": "gudauri",
    }

def test_setup_logging_writes_redacted_file(tmp_path, restore_root_logger):
    log_file = tmp_path / "logs" / "avalanche-report.log"

    setup_logging(LoggingOptions(level="INFO", file=str(log_file)), secret_values=["abc123"])
    logging.getLogger("avalanche_report.test").info("Using key abc123")
    for handler in restore_root_logger.handlers:
        handler.flush()

    line = json.loads(log_file.read_text(encoding="utf-8").splitlines()[-1])
    assert line["message"] == "Using key ***REDACTED***"
    assert restore_root_logger.level == logging.INFO

def test_verbose_enables_debug(restore_root_logger):
    setup_logging(LoggingOptions(level="WARNING"), verbose=True)

    assert restore_root_logger.level == logging.DEBUG
    assert logging.getLogger("urllib3").level == logging.WARNING
