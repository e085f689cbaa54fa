"""
Error taxonomy for bank-processing.

This module provides a hierarchical exception system with:
- Error codes for programmatic handling
- Configuration errors detected before any plugin runs
- A non-fatal no-result signal used for provider fallback
- Replay errors that are distinct from live transport errors
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Standardized error codes."""

    # Configuration errors (1xxx)
    CONFIG_ERROR = "ERR_1000"
    INVALID_BANK = "ERR_1001"
    MISSING_PROVIDER = "ERR_1002"
    DUPLICATE_FEATURE_ID = "ERR_1003"
    INVALID_OPTIONS = "ERR_1004"
    DUPLICATE_PLUGIN = "ERR_1005"

    # Execution errors (2xxx)
    NO_RESULT = "ERR_2000"
    FEATURE_EXECUTION = "ERR_2001"
    PLUGIN_OUTPUT = "ERR_2002"

    # Replay errors (3xxx)
    REPLAY_ERROR = "ERR_3000"
    REPLAY_MISS = "ERR_3001"
    REPLAY_RECORDED_ERROR = "ERR_3002"

    # External call errors (4xxx)
    EXTERNAL_CALL = "ERR_4000"
    UNSUPPORTED_REQUEST = "ERR_4001"

    # Batch errors (5xxx)
    BATCH_FAILED = "ERR_5000"

    INTERNAL_ERROR = "ERR_9000"


@dataclass
class ErrorContext:
    """Structured context for error debugging."""

    bank_id: str | None = None
    feature_id: str | None = None
    provider: str | None = None
    operation: str | None = None
    input: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "bank_id": self.bank_id,
            "feature_id": self.feature_id,
            "provider": self.provider,
            "operation": self.operation,
            "input": self.input,
            **self.extra,
        }


class BankProcessingError(Exception):
    """
    Base exception for all bank-processing errors.

    Attributes:
        code: Standardized error code for programmatic handling
        message: Human-readable error message
        context: Structured debugging context
        cause: Original exception that caused this error
    """

    code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.context = context or ErrorContext()
        self.cause = cause

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code.value,
            "message": self.message,
            "context": self.context.to_dict(),
            "cause": str(self.cause) if self.cause else None,
        }


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigError(BankProcessingError):
    """Base class for errors detected during preflight."""

    code = ErrorCode.CONFIG_ERROR


class InvalidBankError(ConfigError):
    """Input bank does not match the InputBank structure."""

    code = ErrorCode.INVALID_BANK


class MissingProviderError(ConfigError):
    """One or more providers referenced by a bank have no registered plugin."""

    code = ErrorCode.MISSING_PROVIDER

    def __init__(self, providers: list[str], **kwargs):
        super().__init__(f"Missing plugins for providers: {', '.join(providers)}", **kwargs)
        self.providers = list(providers)


class DuplicateFeatureIdError(ConfigError):
    """Two or more features of a bank resolve to the same id."""

    code = ErrorCode.DUPLICATE_FEATURE_ID

    def __init__(self, duplicates: list[tuple[str, int]], **kwargs):
        details = "; ".join(
            f'Duplicate feature id "{feature_id}" at feature index {index}' for feature_id, index in duplicates
        )
        super().__init__(details, **kwargs)
        self.duplicates = list(duplicates)


class InvalidOptionsError(ConfigError):
    """A plugin rejected the options of a feature."""

    code = ErrorCode.INVALID_OPTIONS

    def __init__(self, provider: str, feature_index: int, reason: str, **kwargs):
        super().__init__(
            f'Invalid options for provider="{provider}" at feature index {feature_index}: {reason}',
            **kwargs,
        )
        self.provider = provider
        self.feature_index = feature_index
        self.reason = reason


class DuplicatePluginError(ConfigError):
    """A provider name was registered twice."""

    code = ErrorCode.DUPLICATE_PLUGIN


# =============================================================================
# Execution Errors
# =============================================================================


class NoResultError(BankProcessingError):
    """
    Raised by a plugin when it has nothing to contribute for an input.

    This is not a failure: the executor falls back to the next provider of
    the same fallback chain and never surfaces it to the caller.
    """

    code = ErrorCode.NO_RESULT

    def __init__(self, message: str = "No result for input", **kwargs):
        super().__init__(message, **kwargs)


class PluginOutputError(BankProcessingError):
    """A provider answered, but the answer cannot be turned into an output."""

    code = ErrorCode.PLUGIN_OUTPUT


class FeatureExecutionError(BankProcessingError):
    """An item failed under the FAIL error policy; aborts the bank run."""

    code = ErrorCode.FEATURE_EXECUTION

    def __init__(self, feature_id: str, input: str, reason: str, **kwargs):
        super().__init__(f'Feature "{feature_id}" failed for input "{input}": {reason}', **kwargs)
        self.feature_id = feature_id
        self.input = input
        self.reason = reason


# =============================================================================
# Replay Errors
# =============================================================================


class ReplayError(BankProcessingError):
    """Base class for failures of replay-only external calls."""

    code = ErrorCode.REPLAY_ERROR

    def __init__(self, message: str, *, key: str, **kwargs):
        super().__init__(message, **kwargs)
        self.key = key


class ReplayMissError(ReplayError):
    """No record exists for the call key."""

    code = ErrorCode.REPLAY_MISS

    def __init__(self, key: str, **kwargs):
        super().__init__(f"Replay miss for key={key}", key=key, **kwargs)


class ReplayRecordedError(ReplayError):
    """The record for the call key holds a recorded failure."""

    code = ErrorCode.REPLAY_RECORDED_ERROR

    def __init__(self, key: str, **kwargs):
        super().__init__(f"Replay error for key={key}", key=key, **kwargs)


# =============================================================================
# External Call Errors
# =============================================================================


class ExternalCallError(BankProcessingError):
    """The external service answered with a non-success status."""

    code = ErrorCode.EXTERNAL_CALL

    def __init__(
        self,
        message: str,
        *,
        http_status: int | None = None,
        body: str | None = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.http_status = http_status
        self.body = body


class UnsupportedRequestError(ExternalCallError):
    """The request is not one of the supported transport variants."""

    code = ErrorCode.UNSUPPORTED_REQUEST

    def __init__(self, message: str = "Unsupported external request format", **kwargs):
        super().__init__(message, **kwargs)


# =============================================================================
# Batch Errors
# =============================================================================


class BatchFailedError(BankProcessingError):
    """One or more bank files of a batch failed."""

    code = ErrorCode.BATCH_FAILED

    def __init__(self, failures: dict[str, BaseException], **kwargs):
        lines = [f"[{bank_id}] {error}" for bank_id, error in failures.items()]
        super().__init__("\n".join(lines), **kwargs)
        self.failures = dict(failures)


def describe_error(error: BaseException) -> str:
    """Return the human-readable message of an exception."""
    if isinstance(error, BankProcessingError):
        return error.message
    return str(error) or error.__class__.__name__


def serialize_error(error: BaseException) -> dict[str, Any]:
    """Serialize an exception for a call-log record."""
    data: dict[str, Any] = {
        "name": error.__class__.__name__,
        "message": describe_error(error),
    }
    if isinstance(error, ExternalCallError) and error.http_status is not None:
        data["status"] = error.http_status
    return data


__all__ = [
    "ErrorCode",
    "ErrorContext",
    "BankProcessingError",
    # Config errors
    "ConfigError",
    "InvalidBankError",
    "MissingProviderError",
    "DuplicateFeatureIdError",
    "InvalidOptionsError",
    "DuplicatePluginError",
    # Execution errors
    "NoResultError",
    "PluginOutputError",
    "FeatureExecutionError",
    # Replay errors
    "ReplayError",
    "ReplayMissError",
    "ReplayRecordedError",
    # External call errors
    "ExternalCallError",
    "UnsupportedRequestError",
    # Batch errors
    "BatchFailedError",
    # Utilities
    "describe_error",
    "serialize_error",
]
