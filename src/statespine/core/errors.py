"""
Structured error types for statespine.

Provides the typed error hierarchy used while compiling workflow
definitions, replaying execution history and correlating task logs.
Every error carries a category, a retry hint, structured context and an
optional chained cause so that the operations layer can convert it into
a scoped ``error`` string on the smallest enclosing result object.

Manifesto:
    - **Typed Error Hierarchy:** One error type per failure family
    - **Explicit Retry Semantics:** Each error knows if it's retryable
    - **Rich Context:** Errors carry workflow/state/resource metadata
    - **Contained Blast Radius:** Errors are caught where they happen and
      surface as partial-failure strings, never as transport failures

Architecture:
    ::

        StateSpineError  (category, retryable, context, cause)
          ├── MalformedDefinitionError    (PARSE)   graph degrades to empty
          ├── UnresolvedResourceError     (CONFIG)  node emitted without resource
          ├── UnresolvedLogLocationError  (CONFIG)  bundle with empty entries
          ├── ExternalCallError           (SOURCE)  collaborator call failed
          └── UnsupportedProviderError    (CONFIG)  provider not configured

Examples:
    >>> error = ExternalCallError("log query failed", cause=TimeoutError())
    >>> error.retryable
    True
    >>> error.with_context(state="Extract", log_group="/aws/lambda/extract")
    ExternalCallError('log query failed', category=SOURCE)

Tags:
    error-handling, exception-hierarchy, error-context, statespine
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and routing."""

    PARSE = "PARSE"               # Definition / payload decoding
    VALIDATION = "VALIDATION"     # Invalid request values
    CONFIG = "CONFIG"             # Missing resource or log configuration
    SOURCE = "SOURCE"             # Upstream provider / log backend
    NETWORK = "NETWORK"           # Timeouts, connection failures
    INTERNAL = "INTERNAL"         # Bugs, unexpected state
    UNKNOWN = "UNKNOWN"           # Uncategorized errors


@dataclass
class ErrorContext:
    """
    Structured metadata context for errors.

    Attributes:
        provider: Workflow provider id (e.g. ``aws_stepfunctions``)
        workflow: Workflow (state machine) identifier
        execution: Execution identifier
        state: State name the error relates to
        resource: External resource identifier of a task state
        log_group: Log group the error relates to
        metadata: Additional key-value pairs
    """

    provider: str | None = None
    workflow: str | None = None
    execution: str | None = None
    state: str | None = None
    resource: str | None = None
    log_group: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["provider", "workflow", "execution", "state", "resource", "log_group"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class StateSpineError(Exception):
    """
    Base exception for all statespine errors.

    Subclasses set ``default_category`` and ``default_retryable`` so that
    callers only pass a message (and optionally a cause).
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

    def with_context(self, **kwargs: Any) -> StateSpineError:
        """
        Add context to this error (fluent API).

        Usage:
            raise ExternalCallError("Failed").with_context(
                execution="arn:aws:states:...:execution:etl:run-1",
                state="Extract",
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
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


class MalformedDefinitionError(StateSpineError):
    """Workflow definition is unparseable or has no state collection."""

    default_category = ErrorCategory.PARSE


class UnresolvedResourceError(StateSpineError):
    """A Task state's resource cannot be mapped to a concrete external identity."""

    default_category = ErrorCategory.CONFIG


class UnresolvedLogLocationError(StateSpineError):
    """Log location lookup failed or the resource kind is unsupported."""

    default_category = ErrorCategory.CONFIG


class ExternalCallError(StateSpineError):
    """
    A collaborator call (history fetch, log query, config lookup) failed.

    Retryable by default: upstream APIs throttle and time out.
    """

    default_category = ErrorCategory.SOURCE
    default_retryable = True


class UnsupportedProviderError(StateSpineError):
    """The requested workflow provider is not configured."""

    default_category = ErrorCategory.CONFIG


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "StateSpineError",
    "MalformedDefinitionError",
    "UnresolvedResourceError",
    "UnresolvedLogLocationError",
    "ExternalCallError",
    "UnsupportedProviderError",
]
