"""Structured JSON logging configuration.

All log output goes to stdout in JSON format so the CI job log can be
grepped and ingested line by line.

Format per line:
    {"ts": "2026-03-01T12:00:00+00:00", "level": "INFO", "logger": "reviewer.services.fix_service", "msg": "...", ...}
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone

# Attributes callers attach via extra={} that are promoted to top-level keys
CONTEXT_FIELDS = ("slot", "file", "severity", "reason", "status_code")


class JSONFormatter(logging.Formatter):
    """Emit each log record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }

        for key in CONTEXT_FIELDS:
            if hasattr(record, key):
                payload[key] = getattr(record, key)

        if record.exc_info and record.exc_info[0] is not None:
            payload["exc"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


def setup_logging(level_name: str | None = None) -> None:
    """Configure root logger with JSON output to stdout.

    The log level is controlled by the ``LOG_LEVEL`` env var
    (default ``INFO``) unless *level_name* is given.
    """
    level_name = (level_name or os.getenv("LOG_LEVEL", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())

    root = logging.getLogger()
    root.setLevel(level)

    root.handlers.clear()
    root.addHandler(handler)

    for noisy in ("httpcore", "httpx", "openai"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
