"""JSON logging for the package and helpers for error attributes."""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

LOGGER_NAME = "locomotive"

_TRUE_VALUES = frozenset({"1", "t", "T", "TRUE", "true", "True"})

_LEVEL_NAMES = {
    logging.DEBUG: "DEBUG",
    logging.INFO: "INFO",
    logging.WARNING: "WARN",
    logging.ERROR: "ERROR",
    logging.CRITICAL: "ERROR",
}


class JsonFormatter(logging.Formatter):
    """Format records as one JSON object per line.

    Extra key/value pairs can be passed as ``extra={"attrs": {...}}``.
    """

    def __init__(self, add_source: bool = False) -> None:
        super().__init__()
        self.add_source = add_source

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created, tz=timezone.utc)
            .astimezone()
            .isoformat(timespec="milliseconds"),
            "level": _LEVEL_NAMES.get(record.levelno, record.levelname),
        }
        if self.add_source:
            entry["source"] = {
                "function": record.funcName,
                "file": record.pathname,
                "line": record.lineno,
            }
        entry["msg"] = record.getMessage()
        attrs = getattr(record, "attrs", None)
        if attrs:
            entry.update(attrs)
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str, ensure_ascii=False)


def configure_logging(debug: bool | None = None) -> logging.Logger:
    """Send the package's log records to stdout as JSON and return its logger.

    With ``debug`` unset, the ``DEBUG`` environment variable decides.
    """
    if debug is None:
        debug = os.environ.get("DEBUG", "") in _TRUE_VALUES

    logger = logging.getLogger(LOGGER_NAME)
    logger.handlers.clear()
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    logger.propagate = False
    logger.setLevel(logging.DEBUG if debug else logging.INFO)

    if debug:
        logger.debug("debug logging enabled")

    return logger


def err_attr(err: BaseException | None) -> dict[str, str]:
    """Describe a single error as an ``err`` attribute."""
    if err is None:
        return {"err": "<nil>"}
    return {"err": str(err).strip()}


def errors_attr(*args: BaseException) -> dict[str, list[str]]:
    """Describe several errors as an ``errors`` attribute."""
    return {"errors": [str(err).strip() for err in args]}