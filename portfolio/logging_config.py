"""
Logging setup for the portfolio service.

Records carry the request they were emitted for: the request-id middleware
binds the id, method and path into a context var and a filter copies them onto
every record. Development output is one readable line per record, production
output one JSON object per record.

Usage:
    from portfolio.logging_config import get_logger
    logger = get_logger(__name__)
    logger.info("Row inserted", extra={"table": "projects", "row_id": str(rid)})
"""

import json
import logging
import sys
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from typing import Any, Dict

_EMPTY: Dict[str, str] = {}

log_context: ContextVar[Dict[str, str]] = ContextVar("log_context", default=_EMPTY)

CONTEXT_FIELDS = ("request_id", "method", "path")

# Attributes every LogRecord has; anything else arrived through extra=
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime", "taskName", *CONTEXT_FIELDS}

_QUIET_LOGGERS = {
    "uvicorn.access": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
    "aiosqlite": logging.WARNING,
    "asyncio": logging.WARNING,
}


def bind_log_context(**fields: str) -> Token:
    """Add fields to the log context; pass the token to ``reset_log_context``."""
    return log_context.set({**log_context.get(), **fields})


def reset_log_context(token: Token) -> None:
    log_context.reset(token)


class ContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        context = log_context.get()
        for field in CONTEXT_FIELDS:
            setattr(record, field, context.get(field, "-"))
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per record, extra fields included."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            (field, getattr(record, field))
            for field in CONTEXT_FIELDS
            if getattr(record, field, "-") != "-"
        )
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RECORD_ATTRS and value is not None:
                entry[key] = value
        return json.dumps(entry, ensure_ascii=False, default=str)


DEV_FORMAT = "%(asctime)s %(levelname)-7s %(name)s [%(request_id)s %(method)s %(path)s] %(message)s"


def configure_logging(
    *,
    log_level: str = "INFO",
    environment: str = "development",
    debug: bool = False,
) -> None:
    """
    Install a single stderr handler on the root logger.

    Args:
        log_level: DEBUG, INFO, WARNING or ERROR; unknown names fall back to INFO
        environment: 'production' switches to JSON output
        debug: force DEBUG
    """
    level = logging.DEBUG if debug else logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    handler = logging.StreamHandler(sys.stderr)
    handler.addFilter(ContextFilter())
    if environment == "production":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(DEV_FORMAT, datefmt="%H:%M:%S"))

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level)

    for name, quiet_level in _QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(quiet_level)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
