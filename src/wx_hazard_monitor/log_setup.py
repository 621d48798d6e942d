"""Structured JSON console logging for the monitor."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import Any

from .redaction import sanitize_text

LOGGER_NAME = "wx_hazard_monitor"

# Attributes passed through ``extra=`` that are copied into the JSON line.
CONTEXT_FIELDS: tuple[str, ...] = ("cycle_index", "icao", "category", "store_key")


class JsonConsoleFormatter(logging.Formatter):
    """One JSON object per record, with monitor context fields when present."""

    def format(self, record: logging.LogRecord) -> str:
        event: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": sanitize_text(record.getMessage()),
        }
        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                event[name] = value
        if record.exc_info:
            event["exception"] = sanitize_text(self.formatException(record.exc_info))
        return json.dumps(event, default=str)


def setup_logger(name: str = LOGGER_NAME, level: int | str = logging.INFO) -> logging.Logger:
    """Create the process-wide monitor logger; repeated calls only adjust the level."""
    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False
    if logger.handlers:
        return logger

    handler = logging.StreamHandler()
    handler.setFormatter(JsonConsoleFormatter())
    logger.addHandler(handler)
    return logger


def get_logger(component: str) -> logging.Logger:
    """Child of the monitor logger for one component (``feed``, ``history``...)."""
    return logging.getLogger(f"{LOGGER_NAME}.{component}")
