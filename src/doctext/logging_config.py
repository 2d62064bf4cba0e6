"""Application logging configuration utilities."""

from __future__ import annotations

import json
import logging
import logging.config
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

AUDIT_LOGGER_NAME = "doctext.upload.audit"

# Attributes every LogRecord carries; anything else was passed via ``extra``.
_STANDARD_RECORD_KEYS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime", "taskName"}


class JSONLineFormatter(logging.Formatter):
    """Render each record as a single JSON object."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401 - inherited
        timestamp = (
            datetime.fromtimestamp(record.created, tz=timezone.utc)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z")
        )
        payload: dict[str, Any] = {
            "ts": timestamp,
            "level": record.levelname,
            "logger": record.name,
        }

        if isinstance(record.msg, dict):
            payload.update(record.msg)
        else:
            message = record.getMessage()
            if message:
                payload["message"] = message

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key in _STANDARD_RECORD_KEYS or key.startswith("_"):
                continue
            payload[key] = value

        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging(level: str | None = None, log_dir: Path | None = None) -> None:
    """Route application logs to stderr as JSON and upload audits to a file."""

    resolved_level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    directory = log_dir or Path(os.getenv("DOCTEXT_LOG_DIR", "logs"))
    directory.mkdir(parents=True, exist_ok=True)

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"json": {"()": JSONLineFormatter}},
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "formatter": "json",
                },
                "upload_audit": {
                    "class": "logging.FileHandler",
                    "filename": str(directory / "upload_audit.log"),
                    "mode": "a",
                    "encoding": "utf-8",
                    "formatter": "json",
                },
            },
            "root": {
                "level": resolved_level,
                "handlers": ["default"],
            },
            "loggers": {
                AUDIT_LOGGER_NAME: {
                    "level": "INFO",
                    "handlers": ["upload_audit"],
                    "propagate": False,
                },
                # PIL logs every plugin import at DEBUG.
                "PIL": {"level": "WARNING"},
                "urllib3": {"level": "WARNING"},
            },
        }
    )
