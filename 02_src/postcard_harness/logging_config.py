"""
Structured logging for harness runs.

Every record is one JSON line. Modules attach what they were observing
(channel address, queue url, message id) with ``extra=log_context(...)``;
the formatter lifts it into the ``context`` field so a run's log can be
filtered per endpoint or per queue message.
"""

import json
import logging
import logging.config
import os
from datetime import datetime, timezone
from pathlib import Path

from .config import DEFAULT_LOG_PATH


def log_context(**fields) -> dict:
    """Build the ``extra`` mapping for a log call, dropping unset fields."""
    return {"context": {k: v for k, v in fields.items() if v is not None}}


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "line": record.lineno,
        }

        context = getattr(record, "context", None)
        if context:
            entry["context"] = context

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def setup_logging(
    log_level: str | None = None,
    log_file: str | None = None,
    console_level: str | None = None,
) -> None:
    """
    Setup structured logging for a harness run.

    Args:
        log_level: Level written to the log file. Defaults to the
                   LOG_LEVEL env var or INFO.
        log_file: Path to log file. Defaults to 04_logs/harness.log.
        console_level: Level echoed to stdout. Defaults to log_level.
    """
    log_level = (log_level or os.getenv("LOG_LEVEL", "INFO")).upper()
    console_level = (console_level or log_level).upper()
    log_path = Path(log_file or DEFAULT_LOG_PATH)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "json": {"()": "postcard_harness.logging_config.JSONFormatter"},
            },
            "handlers": {
                "file": {
                    "class": "logging.handlers.RotatingFileHandler",
                    "filename": str(log_path),
                    "maxBytes": 10 * 1024 * 1024,
                    "backupCount": 5,
                    "formatter": "json",
                    "encoding": "utf-8",
                    "level": log_level,
                },
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "json",
                    "stream": "ext://sys.stdout",
                    "level": console_level,
                },
            },
            "root": {"level": log_level, "handlers": ["file", "console"]},
        }
    )


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
