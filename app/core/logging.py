"""
app/core/logging.py

Purpose: Logging configuration

- JSON lines in production, colored single lines elsewhere
- Trace and storage context (trace_id, span, collection, ...) is read from
  the `extra=` fields of each call; nothing is stored globally
- Third-party driver loggers are kept at WARNING
"""

import logging
import sys
import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from app.core.config import Settings, settings

# Fields copied from `extra` into the output when present, in display order
CONTEXT_FIELDS = (
    "trace_id",
    "span",
    "collection",
    "entity_id",
    "user_id",
    "username",
    "result_count",
    "duration_ms",
    "error",
)

# Short names used by the development formatter
SHORT_NAMES = {"trace_id": "trace", "collection": "coll", "duration_ms": "took", "error": "err"}

LEVEL_COLORS = {
    logging.DEBUG: "\033[36m",
    logging.INFO: "\033[32m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[35m",
}
RESET = "\033[0m"

QUIET_LOGGERS = ("motor", "pymongo", "uvicorn.access")


def record_context(record: logging.LogRecord) -> Dict[str, Any]:
    return {name: getattr(record, name) for name in CONTEXT_FIELDS if hasattr(record, name)}


class StructuredFormatter(logging.Formatter):
    """One JSON object per line, for log shippers."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "function": record.funcName,
            "line": record.lineno,
            **record_context(record),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class DevelopmentFormatter(logging.Formatter):
    """Human-readable output for a terminal."""

    def format(self, record: logging.LogRecord) -> str:
        color = LEVEL_COLORS.get(record.levelno, RESET)
        clock = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        line = f"{color}[{clock}] {record.levelname:<8}{RESET} {record.name}: {record.getMessage()}"

        shown = [
            f"{SHORT_NAMES[name]}={value}"
            for name, value in record_context(record).items()
            if name in SHORT_NAMES
        ]
        if shown:
            line += f" [{', '.join(shown)}]"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(config: Optional[Settings] = None) -> logging.Logger:
    """
    Installs a single stdout handler on the root logger.
    Uses JSON format in production, human-readable otherwise.
    """
    config = config or settings

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredFormatter() if config.is_production else DevelopmentFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, config.LOG_LEVEL.upper(), logging.INFO))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger = logging.getLogger("userstore")
    logger.info(f"Logging configured (environment={config.ENVIRONMENT}, level={config.LOG_LEVEL})")
    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the given name.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Logger under the "userstore" namespace
    """
    return logging.getLogger(f"userstore.{name}")
