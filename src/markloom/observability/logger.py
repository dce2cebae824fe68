"""Structured JSON logging for markloom.

Module loggers are children of the ``markloom`` package logger, which
owns the only handler.  Each record becomes one JSON object on one line::

    {"ts": "2026-10-19T12:00:00.123456+00:00", "level": "DEBUG",
     "logger": "markloom.normalizer", "message": "tree repaired",
     "op": "normalize", "wrapped": 2, "placeholder": false}

Structured fields travel on the record as ``extra_fields``; build the
``extra`` mapping with :func:`log_fields`::

    log = get_logger("markloom.editor")
    log.info("markdown loaded", extra=log_fields(op="set_markdown", blocks=4))
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

PACKAGE_LOGGER = "markloom"


class StructuredFormatter(logging.Formatter):
    """One-line JSON rendering: ``ts``, ``level``, ``logger``, ``message``,
    the record's ``extra_fields`` and, when set, ``exception``."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **getattr(record, "extra_fields", {}),
        }
        if record.exc_info and record.exc_info[1] is not None:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def log_fields(**fields: Any) -> dict[str, dict[str, Any]]:
    """Build the ``extra`` argument carrying structured *fields*."""
    return {"extra_fields": fields}


def _package_logger() -> logging.Logger:
    logger = logging.getLogger(PACKAGE_LOGGER)
    if not any(isinstance(h.formatter, StructuredFormatter) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(StructuredFormatter())
        logger.addHandler(handler)
        logger.setLevel(logging.WARNING)
        logger.propagate = False
    return logger


def get_logger(name: str = PACKAGE_LOGGER) -> logging.Logger:
    """Logger *name* under the JSON-configured ``markloom`` package logger.

    The package handler is installed on first use only, so repeated calls
    never stack handlers.  Raise verbosity with
    ``logging.getLogger("markloom").setLevel(logging.DEBUG)``.
    """
    package = _package_logger()
    return package if name == PACKAGE_LOGGER else logging.getLogger(name)
