"""Logging setup shared by every Mixlingo module.

Each record is one JSON object per line on stderr. Pipeline context goes in
through `extra=` and only the keys in EXTRA_FIELDS are kept.

MIXLINGO_LOG_LEVEL sets the threshold (default INFO).
MIXLINGO_LOG_FORMAT=text switches to a terse console format that still shows
the extra fields as key=value pairs.
"""
import json
import logging
import os
import sys
from typing import Any, Dict

EXTRA_FIELDS = (
    "component", "detail", "duration_ms", "count",
    "provider", "lang", "key", "mode", "status_code",
)


def _extras(record: logging.LogRecord) -> Dict[str, Any]:
    return {k: getattr(record, k) for k in EXTRA_FIELDS if getattr(record, k, None) is not None}


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname.lower(),
            "logger": record.name,
            "msg": record.getMessage(),
            **_extras(record),
        }
        exc = record.exc_info[1] if record.exc_info else None
        if exc is not None:
            entry["error"] = str(exc)
            entry["error_type"] = type(exc).__name__
        return json.dumps(entry, ensure_ascii=False, default=str)


class TextFormatter(logging.Formatter):
    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname).1s %(name)s: %(message)s", datefmt="%H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        pairs = " ".join(f"{k}={v}" for k, v in _extras(record).items())
        return f"{line} [{pairs}]" if pairs else line


def _make_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    text_mode = os.environ.get("MIXLINGO_LOG_FORMAT", "json").lower() == "text"
    handler.setFormatter(TextFormatter() if text_mode else JSONFormatter())
    return handler


def get_logger(name: str = "mixlingo") -> logging.Logger:
    """Return the named logger, attaching the Mixlingo handler once.

        logger = get_logger("mixlingo.cache")
        logger.info("Cache loaded", extra={"component": "cache", "count": 42})
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger
    level_name = os.environ.get("MIXLINGO_LOG_LEVEL", "INFO").upper()
    logger.setLevel(getattr(logging, level_name, logging.INFO))
    logger.addHandler(_make_handler())
    logger.propagate = False
    return logger
