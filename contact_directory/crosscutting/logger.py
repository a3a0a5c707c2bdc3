"""
Name: Structured logging

Responsibilities:
  - One JSON object per line: level, logger, message, correlation fields
    (request id, route, acting uid) and whatever the caller put in `extra`
  - Mask credentials and session material before they reach the output

Collaborators:
  - context.py: correlation_fields()
  - crosscutting/config.py: LOG_LEVEL / LOG_JSON (read from the environment
    here so importing the logger never validates the whole Settings)

Notes:
  - `extra` keys named like a secret are masked at any nesting depth
  - configure_logging() is idempotent; the handler is attached once
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

from ..context import correlation_fields

LOGGER_NAME = "contact_directory"
MASK = "***"

_STANDARD_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", None, None))
) | {"message", "asctime", "taskName"}

_SECRET_KEYS = frozenset(
    {
        "password",
        "new_password",
        "password_hash",
        "session_token",
        "access_token",
        "authorization",
        "cookie",
        "jwt_secret",
    }
)


def mask_secrets(value: Any, key: str | None = None) -> Any:
    if key is not None and key.lower() in _SECRET_KEYS:
        return MASK
    if isinstance(value, dict):
        return {str(k): mask_secrets(v, str(k)) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [mask_secrets(v) for v in value]
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


class JsonLogFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **correlation_fields(),
        }
        for key, value in record.__dict__.items():
            if key not in _STANDARD_ATTRS:
                entry[key] = mask_secrets(value, key)
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str, ensure_ascii=False)


def configure_logging(level: str | None = None, json_output: bool | None = None) -> logging.Logger:
    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO")
    if json_output is None:
        json_output = os.getenv("LOG_JSON", "true").strip().lower() not in {"0", "false", "no"}

    log = logging.getLogger(LOGGER_NAME)
    log.setLevel(getattr(logging, level.upper(), logging.INFO))
    if not log.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            JsonLogFormatter()
            if json_output
            else logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
        )
        log.addHandler(handler)
    return log


logger = configure_logging()
