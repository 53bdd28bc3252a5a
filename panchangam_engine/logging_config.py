"""
logging_config.py
=================
Logging setup for processes that embed the engine.

The engine modules only ever call ``logging.getLogger(__name__)``; wiring
handlers is left to whoever owns the process (``main.py``, ``demo.py``).
"""

import json
import logging
import sys

from . import config

# Attributes present on every LogRecord; anything else came in through ``extra=``.
_RESERVED = {
    "name", "msg", "args", "levelname", "levelno", "pathname", "filename",
    "module", "lineno", "funcName", "created", "msecs", "relativeCreated",
    "thread", "threadName", "processName", "process", "taskName",
    "exc_info", "exc_text", "stack_info", "message", "asctime",
}


class JsonFormatter(logging.Formatter):
    """One JSON object per record, extra fields included."""

    def format(self, record: logging.LogRecord) -> str:
        base = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info:
            base["exception"] = self.formatException(record.exc_info)
        for key, value in record.__dict__.items():
            if key not in _RESERVED:
                base[key] = value
        return json.dumps(base, default=str)


def configure_logging(level: str = None, fmt: str = None) -> None:
    """
    Install a single stdout handler on the root logger.

    Args:
        level: DEBUG, INFO, WARNING, ... (defaults to config.LOG_LEVEL)
        fmt:   "json" for structured output, anything else for plain text
    """
    level = (level or config.LOG_LEVEL).upper()
    fmt = fmt or config.LOG_FORMAT

    root = logging.getLogger()
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    if fmt == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        ))

    root.addHandler(handler)
    root.setLevel(getattr(logging, level, logging.INFO))
