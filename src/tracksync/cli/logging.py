"""
Structured logging for the tracksync CLI.

Two output formats:
- text: human-readable, optionally colored, for terminals
- json: one JSON object per line, for log aggregators

Fields passed through ``extra=`` (or bound with ContextLogger) appear under
``context`` in JSON output and as ``key=value`` pairs in text output.
"""

from __future__ import annotations

import json
import logging
import sys
import traceback
from datetime import datetime, timezone
from typing import Any


# Attributes every LogRecord has; anything else came from ``extra``.
_RESERVED_ATTRS = frozenset(
    {
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "message",
        "module",
        "msecs",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "taskName",
        "thread",
        "threadName",
    }
)

NOISY_LOGGERS = ("urllib3", "requests", "charset_normalizer")


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RESERVED_ATTRS and not key.startswith("_")
    }


class JSONFormatter(logging.Formatter):
    """
    Format log records as single-line JSON objects.

    Example output:
        {"timestamp": "2025-01-15T10:30:00.123Z", "level": "INFO",
         "logger": "SyncOrchestrator", "message": "Pushed project ..."}
    """

    def __init__(
        self,
        include_timestamp: bool = True,
        include_level: bool = True,
        include_logger: bool = True,
        include_location: bool = False,
        static_fields: dict[str, Any] | None = None,
    ):
        super().__init__()
        self.include_timestamp = include_timestamp
        self.include_level = include_level
        self.include_logger = include_logger
        self.include_location = include_location
        self.static_fields = static_fields or {}

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {}

        if self.include_timestamp:
            ts = datetime.fromtimestamp(record.created, tz=timezone.utc)
            entry["timestamp"] = ts.strftime("%Y-%m-%dT%H:%M:%S.") + f"{ts.microsecond // 1000:03d}Z"
        if self.include_level:
            entry["level"] = record.levelname
        if self.include_logger:
            entry["logger"] = record.name

        entry["message"] = record.getMessage()
        entry.update(self.static_fields)

        if self.include_location:
            entry["location"] = {
                "file": record.filename,
                "line": record.lineno,
                "function": record.funcName,
            }

        context = _extra_fields(record)
        if context:
            entry["context"] = context

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc_value, exc_tb = record.exc_info
            entry["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc_value),
                "traceback": "".join(traceback.format_exception(exc_type, exc_value, exc_tb)),
            }

        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """
    Human-readable formatter with optional ANSI colors by level.
    """

    COLORS = {
        logging.DEBUG: "\033[2m",
        logging.INFO: "\033[36m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[1;31m",
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True, include_context: bool = True):
        super().__init__(fmt="%(asctime)s %(levelname)-8s %(name)s: %(message)s", datefmt="%H:%M:%S")
        self.use_colors = use_colors
        self.include_context = include_context

    def format(self, record: logging.LogRecord) -> str:
        output = super().format(record)

        if self.include_context:
            context = _extra_fields(record)
            if context:
                output += " " + " ".join(f"{k}={v!r}" for k, v in context.items())

        if self.use_colors and record.levelno in self.COLORS:
            output = f"{self.COLORS[record.levelno]}{output}{self.RESET}"
        return output


class ContextLogger:
    """
    Logger wrapper that attaches a fixed context to every record.

    Example:
        log = ContextLogger("SyncOrchestrator", {"project_id": "p-1"})
        log.bind(task_id="t-9").info("Pushed task")
    """

    def __init__(self, name: str, context: dict[str, Any] | None = None):
        self._logger = logging.getLogger(name)
        self._context = dict(context or {})

    def bind(self, **kwargs: Any) -> ContextLogger:
        """Return a new logger with additional context."""
        return ContextLogger(self._logger.name, {**self._context, **kwargs})

    def _log(self, level: int, msg: str, *args: Any, **kwargs: Any) -> None:
        extra = {**self._context, **(kwargs.pop("extra", None) or {})}
        self._logger.log(level, msg, *args, extra=extra, **kwargs)

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.ERROR, msg, *args, **kwargs)

    def critical(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.CRITICAL, msg, *args, **kwargs)

    def exception(self, msg: str, *args: Any, **kwargs: Any) -> None:
        kwargs.setdefault("exc_info", True)
        self._log(logging.ERROR, msg, *args, **kwargs)


def get_logger(name: str, **context: Any) -> ContextLogger:
    """Get a ContextLogger, optionally with initial context."""
    return ContextLogger(name, context)


def setup_logging(
    level: int = logging.INFO,
    log_format: str = "text",
    log_file: str | None = None,
    static_fields: dict[str, Any] | None = None,
) -> None:
    """
    Configure root logging for the CLI.

    Replaces any existing root handlers with a stderr handler and, when
    log_file is given, a file handler. File output is never colored.

    Args:
        level: Root log level.
        log_format: "text" or "json".
        log_file: Optional path to also write logs to.
        static_fields: Fields added to every JSON record (e.g. service name).
    """
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    root.setLevel(level)

    def make_formatter(colors: bool) -> logging.Formatter:
        if log_format == "json":
            return JSONFormatter(static_fields=static_fields)
        return TextFormatter(use_colors=colors)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(make_formatter(sys.stderr.isatty()))
    root.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(make_formatter(False))
        root.addHandler(file_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
