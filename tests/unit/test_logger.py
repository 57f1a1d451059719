"""
Unit tests for structured logging helpers.
"""

import io
import json
import logging

import pytest

from covid_cleaning.observability.logger import log_operation, setup_logger


@pytest.fixture
def json_logger(monkeypatch):
    stream = io.StringIO()
    monkeypatch.setattr("sys.stdout", stream)
    logger = setup_logger("covid_cleaning.tests.logger", level="INFO", format_type="json")
    yield logger, stream
    logger.handlers.clear()


def records(stream):
    return [json.loads(line) for line in stream.getvalue().splitlines()]


def test_json_fields(json_logger):
    logger, stream = json_logger

    logger.info("hello", extra={"rows_written": 8})

    record = records(stream)[0]
    assert record["message"] == "hello"
    assert record["level"] == "INFO"
    assert record["logger"] == "covid_cleaning.tests.logger"
    assert record["rows_written"] == 8


def test_log_operation_success(json_logger):
    logger, stream = json_logger

    with log_operation("Quality check", logger=logger, run_id="abc"):
        pass

    started, completed = records(stream)
    assert started["message"] == "Starting: Quality check"
    assert completed["status"] == "success"
    assert completed["run_id"] == "abc"
    assert "duration_seconds" in completed


def test_log_operation_does_not_suppress(json_logger):
    logger, stream = json_logger

    with pytest.raises(KeyError):
        with log_operation("Replace cleaned table", logger=logger):
            raise KeyError("missing")

    failed = records(stream)[-1]
    assert failed["status"] == "error"
    assert failed["error_type"] == "KeyError"


def test_level_from_environment(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "WARNING")

    logger = setup_logger("covid_cleaning.tests.env_level", format_type="text")

    assert logger.level == logging.WARNING
    logger.handlers.clear()


def test_unknown_level_falls_back_to_info():
    logger = setup_logger("covid_cleaning.tests.bad_level", level="verbose", format_type="text")

    assert logger.level == logging.INFO
    logger.handlers.clear()
