# src/logging/logger.py — v1
"""Formatters and one-shot setup for the ``vismatch`` logger tree.

Modules log through ``logging.getLogger(__name__)``; everything under the
``vismatch`` package inherits the handlers installed here. Both formatters
read the request context (see logging/context.py) of the thread that emits
the record, which WorkerPool copies onto its worker threads.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from vismatch.logging.context import get_context
from vismatch.logging.handlers import create_rotating_handler

ROOT_LOGGER_NAME = "vismatch"


def _created(record: logging.LogRecord) -> datetime:
    return datetime.fromtimestamp(record.created, tz=timezone.utc)


class JsonFormatter(logging.Formatter):
    """One JSON object per line.

    Keys: timestamp, level, logger, message, plus ``context`` when a request
    is in progress, ``data`` for ``extra={"data": ...}`` and ``exception``.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": _created(record).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = get_context().as_dict()
        if context:
            payload["context"] = context
        data = getattr(record, "data", None)
        if data:
            payload["data"] = data
        if record.exc_info and record.exc_info[1] is not None:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class TextFormatter(logging.Formatter):
    """``12:00:01.250 INFO  vismatch.api <cats> (upload) [req1] message``"""

    def format(self, record: logging.LogRecord) -> str:
        ctx = get_context()
        stamp = f"{_created(record):%H:%M:%S}.{int(record.msecs):03d}"
        line = f"{stamp} {record.levelname:<5} {record.name}"
        if ctx.project:
            line += f" <{ctx.project}>"
        if ctx.operation:
            line += f" ({ctx.operation})"
        if ctx.request_id:
            line += f" [{ctx.request_id}]"
        line += f" {record.getMessage()}"
        if record.exc_info and record.exc_info[1] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(
    level: str = "INFO",
    log_format: str = "json",
    log_file: str | Path | None = None,
    rotation: str = "10MB",
    retention: int = 5,
) -> None:
    """Send ``vismatch`` records to stdout and, optionally, a rolling file.

    Calling it again replaces the handlers from the previous call.

    Args:
        level: DEBUG, INFO, WARNING or ERROR.
        log_format: "json" or "text".
        log_file: Also write to this file when set.
        rotation: File size that triggers a rollover, e.g. "10MB".
        retention: Rolled-over files kept (RotatingFileHandler.backupCount).
    """
    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    formatter = JsonFormatter() if log_format == "json" else TextFormatter()
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(create_rotating_handler(log_file, max_size=rotation, backups=retention))
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)
