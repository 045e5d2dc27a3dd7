"""Logging helpers for ccm."""

from __future__ import annotations

from datetime import UTC, datetime
import json
import logging
import os
from pathlib import Path

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Set on every handler installed here; value is "stream" or the log file path.
HANDLER_TAG = "ccm_handler"


def owned_handlers(logger: logging.Logger) -> list[logging.Handler]:
    """Handlers on ``logger`` that ``setup_logging`` installed."""
    return [h for h in logger.handlers if getattr(h, HANDLER_TAG, None)]


def _find(logger: logging.Logger, tag: str) -> logging.Handler | None:
    for handler in owned_handlers(logger):
        if getattr(handler, HANDLER_TAG) == tag:
            return handler
    return None


def setup_logging(level: str = "WARNING", log_file: str | Path | None = None) -> logging.Logger:
    """Configure and return the ``ccm`` package logger.

    Safe to call repeatedly: handlers installed by an earlier call are reused
    and only get their level adjusted. Handlers attached by anyone else are
    left alone.
    """
    logger = logging.getLogger("ccm")
    numeric_level = getattr(logging, str(level).upper(), logging.WARNING)
    logger.setLevel(numeric_level)

    if _find(logger, "stream") is None:
        ch = logging.StreamHandler()
        ch.setFormatter(logging.Formatter(fmt=LOG_FORMAT))
        setattr(ch, HANDLER_TAG, "stream")
        logger.addHandler(ch)

    if log_file:
        path = Path(log_file).expanduser()
        tag = os.path.abspath(path)
        if _find(logger, tag) is None:
            path.parent.mkdir(parents=True, exist_ok=True)
            fh = logging.FileHandler(path, encoding="utf-8")
            fh.setFormatter(JSONFormatter())
            setattr(fh, HANDLER_TAG, tag)
            logger.addHandler(fh)

    for handler in owned_handlers(logger):
        handler.setLevel(numeric_level)

    logger.propagate = False
    return logger


class JSONFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)
