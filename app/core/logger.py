"""
Structured logging configuration

Every ``app.*`` logger writes one JSON object per line. Context passed through
``extra=`` (user, action, update, collection) is lifted into top-level keys.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import IO, Optional

# Context keys copied from ``extra=`` into the JSON entry
CONTEXT_FIELDS = ("user_id", "action", "update_id", "collection")


class JSONFormatter(logging.Formatter):
    """One JSON object per record, timestamped when the record was created"""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_entry[field] = value

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        # Russian replies stay readable in the log stream
        return json.dumps(log_entry, ensure_ascii=False, default=str)


def setup_logger(name: str, level: str = "INFO", stream: Optional[IO] = None) -> logging.Logger:
    """Attach a single JSON handler to ``name`` and stop propagation."""
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(JSONFormatter())
    logger.addHandler(handler)
    logger.propagate = False

    return logger


def configure_logging(level: str = "INFO", stream: Optional[IO] = None) -> logging.Logger:
    """Route every ``app.*`` module logger through the JSON handler."""
    return setup_logger("app", level, stream)
