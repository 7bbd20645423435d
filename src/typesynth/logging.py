"""Structured logging for typesynth.

Library modules log through plain `logging.getLogger(__name__)`. Orchestration
code (task runs, the CLI) uses `SynthLogger`, which attaches a component,
operation and extra fields to each record so they come out either as a text
prefix or as JSON fields.

Usage:
    from typesynth.logging import configure_logging, get_logger

    configure_logging("INFO", "json")
    log = get_logger("tasks").with_operation("synthesize")
    with log.timed("parse_url", examples=3):
        ...
"""

from __future__ import annotations

import json
import logging
import sys
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

ROOT_LOGGER = "typesynth"


class LogFormat(Enum):
    """Log output format."""

    TEXT = "text"
    JSON = "json"


@dataclass(frozen=True)
class LogContext:
    """Context information for structured logging."""

    component: str = ""
    operation: str = ""
    request_id: str = ""
    extra: dict[str, Any] = field(default_factory=dict)

    def with_extra(self, **kwargs: Any) -> LogContext:
        """Create new context with additional fields."""
        return replace(self, extra={**self.extra, **kwargs})


class StructuredFormatter(logging.Formatter):
    """Formatter that outputs one JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        ctx = getattr(record, "context", None)
        if isinstance(ctx, LogContext):
            if ctx.component:
                log_data["component"] = ctx.component
            if ctx.operation:
                log_data["operation"] = ctx.operation
            if ctx.request_id:
                log_data["request_id"] = ctx.request_id
            log_data.update(ctx.extra)

        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """Formatter that outputs human-readable logs with context."""

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        ctx = getattr(record, "context", None)
        if not isinstance(ctx, LogContext):
            return base

        prefix_parts = []
        if ctx.component:
            prefix_parts.append(f"[{ctx.component}]")
        if ctx.operation:
            prefix_parts.append(f"({ctx.operation})")
        if ctx.request_id:
            prefix_parts.append(f"req:{ctx.request_id[:8]}")
        prefix = " ".join(prefix_parts)

        extra = " ".join(f"{k}={v}" for k, v in ctx.extra.items())
        return " ".join(part for part in (prefix, base, extra) if part)


class SynthLogger:
    """Logger that carries a LogContext.

    The `with_*` methods return a new logger sharing the underlying
    `logging.Logger`; the original is left unchanged.
    """

    def __init__(self, name: str, context: LogContext | None = None) -> None:
        self._logger = logging.getLogger(f"{ROOT_LOGGER}.{name}")
        self._context = context or LogContext(component=name)

    @property
    def context(self) -> LogContext:
        return self._context

    def _derive(self, context: LogContext) -> SynthLogger:
        derived = SynthLogger.__new__(SynthLogger)
        derived._logger = self._logger
        derived._context = context
        return derived

    def with_context(self, **kwargs: Any) -> SynthLogger:
        return self._derive(self._context.with_extra(**kwargs))

    def with_operation(self, operation: str) -> SynthLogger:
        return self._derive(replace(self._context, operation=operation))

    def with_request_id(self, request_id: str) -> SynthLogger:
        return self._derive(replace(self._context, request_id=request_id))

    def _log(self, level: int, msg: str, exc_info: bool = False, **kwargs: Any) -> None:
        if not self._logger.isEnabledFor(level):
            return
        record = self._logger.makeRecord(
            self._logger.name,
            level,
            "(unknown file)",
            0,
            msg,
            (),
            sys.exc_info() if exc_info else None,
        )
        record.context = self._context.with_extra(**kwargs) if kwargs else self._context
        self._logger.handle(record)

    def debug(self, msg: str, **kwargs: Any) -> None:
        self._log(logging.DEBUG, msg, **kwargs)

    def info(self, msg: str, **kwargs: Any) -> None:
        self._log(logging.INFO, msg, **kwargs)

    def warning(self, msg: str, **kwargs: Any) -> None:
        self._log(logging.WARNING, msg, **kwargs)

    def error(self, msg: str, **kwargs: Any) -> None:
        self._log(logging.ERROR, msg, **kwargs)

    def exception(self, msg: str, **kwargs: Any) -> None:
        """Log an error with the exception currently being handled."""
        self._log(logging.ERROR, msg, exc_info=True, **kwargs)

    @contextmanager
    def timed(self, operation: str, **kwargs: Any) -> Iterator[dict[str, Any]]:
        """Time a block and log its duration when it ends.

        Yields:
            Dict where 'elapsed_ms' is set after completion; the block may add
            its own fields, which are logged too.
        """
        start = time.perf_counter()
        result: dict[str, Any] = {}
        try:
            yield result
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            result["elapsed_ms"] = elapsed_ms
            fields = {k: v for k, v in result.items() if k != "elapsed_ms"}
            self.info(
                f"{operation} completed",
                operation=operation,
                elapsed_ms=f"{elapsed_ms:.2f}",
                **kwargs,
                **fields,
            )


_loggers: dict[str, SynthLogger] = {}


def get_logger(name: str) -> SynthLogger:
    """Get or create the structured logger for a component."""
    if name not in _loggers:
        _loggers[name] = SynthLogger(name)
    return _loggers[name]


def configure_logging(
    level: int | str = logging.WARNING,
    log_format: LogFormat | str = LogFormat.TEXT,
) -> None:
    """Send typesynth logs to stderr at `level` in `log_format`.

    Replaces any handler a previous call installed.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    if isinstance(log_format, str):
        log_format = LogFormat(log_format)

    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(level)
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    if log_format == LogFormat.JSON:
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(TextFormatter("%(asctime)s %(levelname)s %(message)s"))
    root.addHandler(handler)


def log_event(
    component: str,
    event: str,
    level: int = logging.INFO,
    **kwargs: Any,
) -> None:
    """Log a single event quickly."""
    get_logger(component)._log(level, event, **kwargs)
