"""
Structured logging for bank-processing.

This module provides:
- A logger whose records carry structured fields next to the message
- Bank/feature context that follows the running task (contextvars)
- Typed helpers for replay hits, replay misses and live external calls
- JSON and text formatters
- Timing utilities
"""

from __future__ import annotations

import json
import logging
import sys
import time
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import asdict, dataclass, field, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

# Attribute of a LogRecord holding the structured fields.
FIELDS_ATTR = "fields"

# =============================================================================
# Log Record Types
# =============================================================================


@dataclass(frozen=True)
class LogContext:
    """Fields attached to every record emitted inside a context block."""

    bank_id: str | None = None
    feature_id: str | None = None
    provider: str | None = None
    operation: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


_current_context: ContextVar[LogContext] = ContextVar("bank_processing_log_context", default=LogContext())


@dataclass
class ExternalCallLog:
    """Log record for a live external call."""

    key: str
    provider: str
    operation: str

    success: bool = True
    status_code: int | None = None
    error: str | None = None

    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    duration_ms: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


# =============================================================================
# Structured Logger
# =============================================================================


class StructuredLogger:
    """
    Thin wrapper over a stdlib logger that attaches structured fields.

    Fields (the active ``LogContext`` plus keyword arguments) travel on the
    record as ``record.fields``; the formatters decide how to print them.

    Example:
        ```python
        logger = get_logger()

        with logger.bank_context("lesson-01"):
            logger.info("Processing bank", items=12)
        ```
    """

    def __init__(
        self,
        name: str = "bank_processing",
        level: str = "INFO",
        json_output: bool = False,
        log_file: str | Path | None = None,
    ):
        self.name = name
        self.json_output = json_output

        self._logger = logging.getLogger(name)
        self._logger.setLevel(getattr(logging, level.upper()))
        self._logger.propagate = False

        if not self._logger.handlers:
            formatter = JSONFormatter() if json_output else TextFormatter()
            handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
            if log_file is not None:
                handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
            for handler in handlers:
                handler.setFormatter(formatter)
                self._logger.addHandler(handler)

    @property
    def context(self) -> LogContext:
        return _current_context.get()

    @contextmanager
    def bank_context(self, bank_id: str) -> Iterator[str]:
        """Scope records to one bank run; yields the bank id."""
        token = _current_context.set(LogContext(bank_id=bank_id))
        try:
            yield bank_id
        finally:
            _current_context.reset(token)

    @contextmanager
    def feature_context(self, feature_id: str, provider: str | None = None) -> Iterator[LogContext]:
        """Narrow the current context to one feature of the running bank."""
        ctx = replace(_current_context.get(), feature_id=feature_id, provider=provider)
        token = _current_context.set(ctx)
        try:
            yield ctx
        finally:
            _current_context.reset(token)

    def _log(
        self,
        level: int,
        message: str,
        event_type: str | None = None,
        data: dict[str, Any] | None = None,
    ) -> None:
        if not self._logger.isEnabledFor(level):
            return

        fields = self.context.to_dict()
        if event_type:
            fields["event_type"] = event_type
        if data:
            fields.update(data)
        self._logger.log(level, message, extra={FIELDS_ATTR: fields})

    def debug(self, message: str, **kwargs) -> None:
        self._log(logging.DEBUG, message, data=kwargs)

    def info(self, message: str, **kwargs) -> None:
        self._log(logging.INFO, message, data=kwargs)

    def warning(self, message: str, **kwargs) -> None:
        self._log(logging.WARNING, message, data=kwargs)

    def error(self, message: str, **kwargs) -> None:
        self._log(logging.ERROR, message, data=kwargs)

    # Typed logging methods

    def log_replay_hit(self, key: str, **kwargs) -> None:
        self._log(logging.DEBUG, f"Replay hit: {key}", event_type="replay_hit", data={"call_key": key, **kwargs})

    def log_replay_miss(self, key: str, **kwargs) -> None:
        self._log(logging.DEBUG, f"Replay miss: {key}", event_type="replay_miss", data={"call_key": key, **kwargs})

    def log_replay_retry(self, key: str, **kwargs) -> None:
        """A recorded error for ``key`` is retried live."""
        self._log(
            logging.DEBUG, f"Retrying recorded error: {key}", event_type="replay_retry", data={"call_key": key, **kwargs}
        )

    def log_external_call(self, call: ExternalCallLog) -> None:
        level = logging.INFO if call.success else logging.WARNING
        message = f"External call {call.provider}/{call.operation}"
        if call.duration_ms is not None:
            message += f" ({call.duration_ms:.0f}ms)"
        self._log(level, message, event_type="external_call", data=call.to_dict())

    def log_error(self, error: BaseException, message: str | None = None, **kwargs) -> None:
        """Log an error with its code and non-empty context fields."""
        data: dict[str, Any] = {
            "error_type": type(error).__name__,
            "error_message": str(error),
            **kwargs,
        }
        code = getattr(error, "code", None)
        if code is not None:
            data["error_code"] = str(getattr(code, "value", code))
        error_context = getattr(error, "context", None)
        if error_context is not None:
            details = {k: v for k, v in error_context.to_dict().items() if v is not None}
            if details:
                data["error_context"] = details

        self._log(logging.ERROR, message or f"Error: {error}", event_type="error", data=data)


# =============================================================================
# Formatters
# =============================================================================


def record_fields(record: logging.LogRecord) -> dict[str, Any]:
    return dict(getattr(record, FIELDS_ATTR, None) or {})


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(record_fields(record))
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


class TextFormatter(logging.Formatter):
    """``HH:MM:SS.mmm LEVEL message key=value ...``, colored on a TTY."""

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool | None = None) -> None:
        super().__init__()
        self.use_colors = sys.stderr.isatty() if use_colors is None else use_colors

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S.%f")[:-3]
        color = self.LEVEL_COLORS.get(record.levelname, "") if self.use_colors else ""
        reset = self.RESET if color else ""

        line = f"{timestamp} {color}{record.levelname:8}{reset} {record.getMessage()}"
        extras = " ".join(f"{k}={v}" for k, v in record_fields(record).items())
        if extras:
            line = f"{line} {extras}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


# =============================================================================
# Timing Utilities
# =============================================================================


@dataclass
class Timer:
    """Wall-clock stopwatch in milliseconds."""

    start_time: float = field(default_factory=time.perf_counter)
    end_time: float | None = None

    def stop(self) -> float:
        self.end_time = time.perf_counter()
        return self.elapsed_ms

    @property
    def elapsed_ms(self) -> float:
        end = self.end_time if self.end_time is not None else time.perf_counter()
        return (end - self.start_time) * 1000


@contextmanager
def timed() -> Iterator[Timer]:
    timer = Timer()
    try:
        yield timer
    finally:
        timer.stop()


def truncate_for_log(text: str, max_length: int = 200) -> str:
    if len(text) <= max_length:
        return text
    return text[:max_length] + f"... ({len(text)} chars total)"


# =============================================================================
# Default Logger
# =============================================================================

_default_logger: StructuredLogger | None = None


def get_logger(name: str = "bank_processing") -> StructuredLogger:
    """Get or create the default structured logger."""
    global _default_logger
    if _default_logger is None or _default_logger.name != name:
        _default_logger = StructuredLogger(name)
    return _default_logger


def configure_logging(
    level: str = "INFO",
    json_output: bool = False,
    log_file: str | Path | None = None,
    name: str = "bank_processing",
) -> StructuredLogger:
    """Replace the handlers of ``name`` and make it the default logger."""
    global _default_logger
    stdlib_logger = logging.getLogger(name)
    for handler in list(stdlib_logger.handlers):
        stdlib_logger.removeHandler(handler)
        handler.close()
    _default_logger = StructuredLogger(name=name, level=level, json_output=json_output, log_file=log_file)
    return _default_logger


__all__ = [
    "LogContext",
    "ExternalCallLog",
    "StructuredLogger",
    "JSONFormatter",
    "TextFormatter",
    "record_fields",
    "Timer",
    "timed",
    "truncate_for_log",
    "get_logger",
    "configure_logging",
]
