"""Structured logging helpers."""

from __future__ import annotations

import json
import logging
import logging.config
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Mapping

from .config import Config

REDACTED = "***REDACTED***"

# Attributes every LogRecord carries; anything else arrived through ``extra=``.
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))) | {
    "message",
    "asctime",
}

_REDACT_KEYS = frozenset({"govee-api-key", "api_key", "authorization", "x-api-key", "cookie"})


def redact_mapping(values: Mapping[str, Any], extra_keys: Iterable[str] = ()) -> Dict[str, Any]:
    """Return a copy of ``values`` with sensitive keys masked, nested mappings included."""

    keys = _REDACT_KEYS | {key.lower() for key in extra_keys}
    return _redact(values, keys)


def _redact(values: Mapping[str, Any], keys: frozenset) -> Dict[str, Any]:
    redacted: Dict[str, Any] = {}
    for key, value in values.items():
        if str(key).lower() in keys:
            redacted[key] = REDACTED
        elif isinstance(value, Mapping):
            redacted[key] = _redact(value, keys)
        else:
            redacted[key] = value
    return redacted


def record_extras(record: logging.LogRecord) -> Dict[str, Any]:
    """Collect the ``extra=`` context attached to ``record``, redacted."""

    extras = {
        key: value
        for key, value in vars(record).items()
        if key not in _RECORD_ATTRS and not key.startswith("_")
    }
    return redact_mapping(extras)


class JsonFormatter(logging.Formatter):
    """One JSON object per line: envelope fields first, then redacted extras."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        payload: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack"] = self.formatStack(record.stack_info)
        for key, value in record_extras(record).items():
            payload.setdefault(key, value)
        return json.dumps(payload, ensure_ascii=False, default=str)


_SUBSYSTEM_LOGGERS = (
    "govee",
    "govee.gateway",
    "govee.cloud",
    "govee.lan",
    "govee.rate_limit",
    "govee.server",
)


def configure_logging(config: Config) -> None:
    """Configure global logging based on the provided config.

    Everything goes to stderr; stdout carries the stdio agent transport.
    """

    level = config.log_level.upper()
    if config.log_format == "json":
        formatter = {
            "format": "json",
            "()": f"{__name__}.JsonFormatter",
        }
    else:
        formatter = {
            "format": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
            "datefmt": "%Y-%m-%dT%H:%M:%S%z",
        }

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": formatter,
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                    "level": level,
                    "stream": "ext://sys.stderr",
                }
            },
            "loggers": {
                name: {
                    "level": level,
                    "handlers": ["console"],
                    "propagate": False,
                }
                for name in _SUBSYSTEM_LOGGERS
            },
            "root": {"level": level, "handlers": ["console"]},
        }
    )


def get_logger(name: str) -> logging.Logger:
    """Return a namespaced logger for the requested subsystem."""

    return logging.getLogger(name)
