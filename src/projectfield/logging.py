"""Structured logging for projectfield.

Three output styles share one :class:`StructuredLogger`:

* plain text (local shells),
* JSON lines (``json_logging=True``) with structured extras,
* GitHub Actions workflow commands (``::debug::`` etc.) when running inside
  an Actions job, so debug lines only show up with step debugging enabled.
"""

from __future__ import annotations

import json
import logging
import os
import sys
import time
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any

_RESERVED = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "lineno",
    "exc_info",
    "exc_text",
    "stack_info",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "taskName",
    "message",
    "asctime",
}


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        # Pass through extra kwargs injected by StructuredLogger
        for k, v in record.__dict__.items():
            if k not in _RESERVED and not k.startswith("_") and k not in entry:
                entry[k] = v
        return json.dumps(entry, default=str)


class ActionsFormatter(logging.Formatter):
    """Render records as GitHub Actions workflow commands."""

    _COMMANDS = {
        logging.DEBUG: "debug",
        logging.WARNING: "warning",
        logging.ERROR: "error",
        logging.CRITICAL: "error",
    }

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        command = self._COMMANDS.get(record.levelno)
        if command is None:
            return message
        return f"::{command}::{escape_data(message)}"


def escape_data(value: str) -> str:
    """Escape a workflow command payload the way the Actions runner expects."""
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def running_in_actions(environ: Mapping[str, str] | None = None) -> bool:
    env = os.environ if environ is None else environ
    return env.get("GITHUB_ACTIONS") == "true"


def _stdout_handler(json_logging: bool, actions: bool) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    formatter: logging.Formatter
    if json_logging:
        formatter = JSONFormatter()
    elif actions:
        formatter = ActionsFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s %(levelname)s %(message)s")
    handler.setFormatter(formatter)
    return handler


class StructuredLogger:
    def __init__(
        self,
        name: str = "projectfield",
        json_logging: bool = False,
        level: str = "INFO",
        actions: bool = False,
    ) -> None:
        self._logger = logging.getLogger(name)
        self._logger.setLevel(getattr(logging, level.upper(), logging.INFO))
        self._logger.handlers[:] = [_stdout_handler(json_logging, actions)]
        self._logger.propagate = False

    @property
    def stdlib(self) -> logging.Logger:
        """The wrapped :class:`logging.Logger` (handed to operator snippets)."""
        return self._logger

    def log_operation(self, operation: str, **kw: Any) -> None:
        extra = {"operation": operation, **kw}
        self._logger.info(f"Operation: {operation}", extra=extra)

    def log_performance(self, operation: str, duration_ms: float, **kw: Any) -> None:
        extra = {"operation": operation, "duration_ms": round(duration_ms, 2), **kw}
        self._logger.debug(f"Performance: {operation} completed in {duration_ms:.2f}ms", extra=extra)

    def debug(self, message: str, **kw: Any) -> None:
        self._logger.debug(message, extra=kw)

    def info(self, message: str, **kw: Any) -> None:
        self._logger.info(message, extra=kw)

    def warning(self, message: str, **kw: Any) -> None:
        self._logger.warning(message, extra=kw)

    def error(self, message: str, **kw: Any) -> None:  # noqa: D401
        self._logger.error(message, extra=kw)

    @contextmanager
    def timed_operation(self, operation: str, **kw: Any) -> Iterator[None]:  # noqa: D401
        start = time.perf_counter()
        self._logger.debug(f"Operation: {operation}_start", extra={"operation": f"{operation}_start", **kw})
        yield
        self.log_performance(operation, (time.perf_counter() - start) * 1000, **kw)


_GLOBAL: StructuredLogger | None = None


def get_logger() -> StructuredLogger:
    global _GLOBAL  # noqa: PLW0603
    if _GLOBAL is None:
        _GLOBAL = StructuredLogger(actions=running_in_actions())
    return _GLOBAL


def configure_logging(
    json_logging: bool = False, level: str = "INFO", actions: bool | None = None
) -> StructuredLogger:
    global _GLOBAL  # noqa: PLW0603
    if os.environ.get("RUNNER_DEBUG") == "1":
        level = "DEBUG"
    _GLOBAL = StructuredLogger(
        json_logging=json_logging,
        level=level,
        actions=running_in_actions() if actions is None else actions,
    )
    return _GLOBAL


__all__ = [
    "ActionsFormatter",
    "JSONFormatter",
    "StructuredLogger",
    "configure_logging",
    "escape_data",
    "get_logger",
    "running_in_actions",
]
