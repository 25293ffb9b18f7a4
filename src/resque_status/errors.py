"""
Structured error types for resque-status.

Every failure the registry can surface is a :class:`ResqueStatusError`
subclass carrying a category, a retry hint, structured context, and the
chained underlying exception.

Manifesto:
    - **Typed Error Hierarchy:** One type per failure the caller must tell apart
    - **Explicit Retry Semantics:** Each error knows if it's retryable
    - **No Internal Retries:** The registry reports, the caller decides
    - **Error Chaining:** Redis/driver exceptions are kept as ``cause``

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────────┐
        │                    ResqueStatusError                         │
        │          (category, retryable, context, cause)               │
        ├──────────────────────────────────────────────────────────────┤
        │                                                              │
        │  StoreUnavailableError     MalformedIdentifierError          │
        │  (STORE, retryable)        (VALIDATION)                      │
        │                                                              │
        │                            SerializationError                │
        │                            (SERIALIZATION)                   │
        │                                 │                            │
        │  ConfigError               PayloadEncodeError                │
        │  (CONFIG)                  PayloadDecodeError                │
        └──────────────────────────────────────────────────────────────┘

Examples:
    >>> error = StoreUnavailableError("HSET ResqueWorker failed")
    >>> error.retryable
    True
    >>> error.with_context(key="ResqueWorker").to_dict()["context"]
    {'key': 'ResqueWorker'}

Guardrails:
    ❌ DON'T: Retry inside the registry
    ✅ DO: Check ``error.retryable`` in the caller's retry policy

    ❌ DON'T: Swallow the original exception
    ✅ DO: Pass it as ``cause=`` for error chaining

Tags:
    error-handling, exception-hierarchy, retry-logic, error-context,
    resque-status

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and routing."""

    STORE = "STORE"                  # Redis connection, timeout, protocol
    VALIDATION = "VALIDATION"        # Caller contract violations
    SERIALIZATION = "SERIALIZATION"  # Args payload encode/decode
    CONFIG = "CONFIG"                # Invalid settings
    INTERNAL = "INTERNAL"            # Bugs, unexpected state


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Typed fields cover the handful of things every registry failure is
    about (which key, which pid, which worker name, which store command);
    anything else goes into ``metadata``.

    Examples:
        >>> ctx = ErrorContext(key="ResqueWorker", pid=30677)
        >>> ctx.to_dict()
        {'key': 'ResqueWorker', 'pid': 30677}
    """

    key: str | None = None
    pid: int | None = None
    worker: str | None = None
    command: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for name in ["key", "pid", "worker", "command"]:
            value = getattr(self, name)
            if value is not None:
                result[name] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class ResqueStatusError(Exception):
    """
    Base exception for all resque-status errors.

    Subclasses set ``default_category`` and ``default_retryable``; callers
    may override either per instance.

    Examples:
        >>> error = ResqueStatusError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.retryable
        False
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> ResqueStatusError:
        """
        Add context to this error (fluent API).

        Usage:
            raise StoreUnavailableError("GET failed").with_context(
                key="ResqueSchedulerWorker", command="GET"
            )
        """
        for key, value in kwargs.items():
            if key != "metadata" and hasattr(self.context, key):
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# STORE ERRORS
# =============================================================================


class StoreUnavailableError(ResqueStatusError):
    """
    A request to the key-value store failed.

    Covers connection refusal, socket timeouts, and protocol errors. Always
    surfaced to the caller; the registry never retries on its own.
    """

    default_category = ErrorCategory.STORE
    default_retryable = True


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class MalformedIdentifierError(ResqueStatusError):
    """Worker name is not of the form ``host:pid:queue``."""

    default_category = ErrorCategory.VALIDATION
    default_retryable = False


# =============================================================================
# SERIALIZATION ERRORS
# =============================================================================


class SerializationError(ResqueStatusError):
    """Runtime-argument payload could not be converted."""

    default_category = ErrorCategory.SERIALIZATION
    default_retryable = False


class PayloadEncodeError(SerializationError):
    """Args bag could not be encoded for storage."""


class PayloadDecodeError(SerializationError):
    """Stored payload could not be decoded back to an args bag."""


# =============================================================================
# CONFIG ERRORS
# =============================================================================


class ConfigError(ResqueStatusError):
    """Invalid or inconsistent configuration."""

    default_category = ErrorCategory.CONFIG
    default_retryable = False


# =============================================================================
# HELPERS
# =============================================================================


def is_retryable(error: Exception) -> bool:
    """
    Check if an error is retryable.

    Non-resque-status exceptions are treated as not retryable.
    """
    if isinstance(error, ResqueStatusError):
        return error.retryable
    return False


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "ResqueStatusError",
    "StoreUnavailableError",
    "MalformedIdentifierError",
    "SerializationError",
    "PayloadEncodeError",
    "PayloadDecodeError",
    "ConfigError",
    "is_retryable",
]
