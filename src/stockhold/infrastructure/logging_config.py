"""Logging setup for the CLI and the sweeper process.

Modules log through ``logging.getLogger(__name__)``; this module only
decides where records go and how they look. ``json`` format emits one
object per line for log aggregation, carrying the ``order_id``,
``reservation_id`` and ``reference`` context passed via ``extra=``.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

CONTEXT_FIELDS = ("order_id", "reservation_id", "reference")

TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


class JsonFormatter(logging.Formatter):
    """Formats each record as a single JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for name in CONTEXT_FIELDS:
            if hasattr(record, name):
                log_data[name] = getattr(record, name)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def setup_logging(level: str = "INFO", fmt: str = "text") -> None:
    """Route ``stockhold`` logs to stderr. Safe to call more than once."""
    handler = logging.StreamHandler(sys.stderr)
    if fmt == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))

    logger = logging.getLogger("stockhold")
    logger.setLevel(level)
    for existing in list(logger.handlers):
        logger.removeHandler(existing)
    logger.addHandler(handler)
