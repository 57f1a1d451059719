"""
Structured JSON logging for covid-cleaning

Every pipeline module logs through get_logger(__name__); records are
emitted as one JSON object per line (python-json-logger) or as plain text
for local runs.
"""
import logging
import os
import sys
import time
from contextlib import contextmanager

from pythonjsonlogger import jsonlogger

DEFAULT_LOGGER_NAME = "covid-cleaning"

JSON_FORMAT = "%(timestamp)s %(level)s %(logger)s %(module)s %(function)s %(message)s"
TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(module)s:%(funcName)s - %(message)s"


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter with timestamp, level, logger, module and function fields
    """

    def add_fields(self, log_record: dict, record: logging.LogRecord, message_dict: dict) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record.setdefault("timestamp", self.formatTime(record, self.datefmt))
        log_record["level"] = (log_record.get("level") or record.levelname).upper()
        log_record.update(logger=record.name, module=record.module, function=record.funcName)


def build_formatter(format_type: str) -> logging.Formatter:
    if format_type == "json":
        return CustomJsonFormatter(fmt=JSON_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S")
    return logging.Formatter(fmt=TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")


def setup_logger(
    name: str = DEFAULT_LOGGER_NAME,
    level: str | None = None,
    format_type: str | None = None,
) -> logging.Logger:
    """
    Configure a logger with a single stdout handler

    Args:
        name: Logger name
        level: Log level name, defaults to LOG_LEVEL (unknown names mean INFO)
        format_type: "json" or "text", defaults to LOG_FORMAT or "json"

    Returns:
        Configured logger instance
    """
    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    log_level = logging.getLevelName(level_name)
    if not isinstance(log_level, int):
        log_level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(build_formatter(format_type or os.getenv("LOG_FORMAT", "json")))

    logger = logging.getLogger(name)
    logger.setLevel(log_level)
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def get_logger(name: str = DEFAULT_LOGGER_NAME) -> logging.Logger:
    """Return the named logger, configuring it on first use."""
    logger = logging.getLogger(name)
    return logger if logger.handlers else setup_logger(name)


def configure_all(level: str | None = None, format_type: str | None = None) -> None:
    """
    Reconfigure every pipeline logger created so far.

    The CLI calls this after parsing --log-level/--log-format, since module
    loggers are created at import time.
    """
    for name in list(logging.root.manager.loggerDict):
        if name == DEFAULT_LOGGER_NAME or name.startswith("covid_cleaning"):
            setup_logger(name, level=level, format_type=format_type)


@contextmanager
def log_operation(operation_name: str, logger: logging.Logger | None = None, **extra_fields):
    """
    Log start, completion or failure of an operation with its duration.

    Exceptions are logged with their traceback and re-raised.

    Usage:
        with log_operation("Quality check", logger=logger, window_start="2020-01-01"):
            ...
    """
    logger = logger or get_logger()
    fields = {"operation": operation_name, **extra_fields}
    logger.info(f"Starting: {operation_name}", extra=fields)
    started = time.time()

    try:
        yield
    except Exception as e:
        logger.error(
            f"Failed: {operation_name}",
            extra={
                **fields,
                "duration_seconds": round(time.time() - started, 3),
                "status": "error",
                "error_type": type(e).__name__,
                "error_message": str(e),
            },
            exc_info=True,
        )
        raise

    logger.info(
        f"Completed: {operation_name}",
        extra={**fields, "duration_seconds": round(time.time() - started, 3), "status": "success"},
    )
