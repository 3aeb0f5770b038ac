"""Structured JSON logging for the GeoDrop backend."""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

ROOT_LOGGER_NAME = "geodrop"

# Never written to the log, whatever a caller puts in extra_data.
REDACTED_KEYS = frozenset({"secret", "secretHash", "secret_hash", "token", "authorization", "password"})
REDACTED = "[redacted]"


def redact(data: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of ``data`` with sensitive values masked, recursively."""
    clean: Dict[str, Any] = {}
    for key, value in data.items():
        if key in REDACTED_KEYS:
            clean[key] = REDACTED
        elif isinstance(value, dict):
            clean[key] = redact(value)
        else:
            clean[key] = value
    return clean


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with static service fields and ``extra_data``."""

    def __init__(self, static_fields: Optional[Dict[str, Any]] = None):
        super().__init__()
        self.static_fields = dict(static_fields or {})

    def format(self, record: logging.LogRecord) -> str:
        """
        Format log record as JSON.

        Args:
            record: Log record to format.

        Returns:
            JSON-formatted log string.
        """
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        log_data.update(self.static_fields)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        extra = getattr(record, "extra_data", None)
        if isinstance(extra, dict):
            log_data.update(redact(extra))

        return json.dumps(log_data, default=str)


def configure_logging(debug: bool = False, **static_fields: Any) -> logging.Logger:
    """
    Configure the service logger tree.

    Args:
        debug: Enable debug logging.
        static_fields: Fields stamped on every record (service name, environment).

    Returns:
        The ``geodrop`` logger every module logger hangs off.
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.handlers.clear()
    logger.propagate = False

    log_level = logging.DEBUG if debug else logging.INFO
    logger.setLevel(log_level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(JSONFormatter(static_fields))
    logger.addHandler(handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Logger for a module, namespaced under ``geodrop``."""
    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
