"""
Result types and error hierarchy for toolsethub.

This module provides:
1. Result[T, E] type for explicit error handling
2. Domain-specific exception hierarchy

Usage:
    from toolsethub.core.result import Ok, Err, Result, ArgumentError

    def coerce(value: object) -> Result[int, ArgumentError]:
        if not isinstance(value, int):
            return Err(ArgumentError("expected an integer"))
        return Ok(value)

    match coerce(raw):
        case Ok(value):
            ...
        case Err(error):
            ...
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")
E = TypeVar("E", bound=Exception)


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Represents a successful result containing a value."""

    value: T


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Represents a failed result containing an error."""

    error: E


# Type alias for Result
Result = Ok[T] | Err[E]


# ---------------------------------------------------------------------------
# Domain-specific error hierarchy
# ---------------------------------------------------------------------------


class ToolsetHubError(Exception):
    """Base exception for all toolsethub errors.

    All custom exceptions should inherit from this class to enable
    consistent error handling across the codebase.
    """

    def __init__(self, message: str, *, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} [{ctx_str}]"
        return self.message


class SecurityError(ToolsetHubError):
    """Raised when a toolset id is rejected by the allow-list.

    Raised before any load is attempted; the rejected id is never cached.
    """


class ToolsetNotFoundError(ToolsetHubError):
    """Raised when no loader strategy can resolve a toolset id."""


class ToolsetLoadError(ToolsetHubError):
    """Raised when a loader strategy matched but could not build the toolset.

    Examples:
    - Provider constructor raised
    - Plugin module failed to import
    - Tool introspection failed
    - Load exceeded the configured timeout
    """


class ToolNotFoundError(ToolsetHubError):
    """Raised when a resolved toolset has no tool with the requested name."""


class ArgumentError(ToolsetHubError):
    """Raised for tool argument failures.

    Examples:
    - Missing required argument
    - Value that cannot be coerced to the declared kind
    """


class ToolInvocationError(ToolsetHubError):
    """Raised when a tool's own logic fails during invocation."""


__all__ = [
    "ArgumentError",
    "Err",
    "Ok",
    "Result",
    "SecurityError",
    "ToolInvocationError",
    "ToolNotFoundError",
    "ToolsetHubError",
    "ToolsetLoadError",
    "ToolsetNotFoundError",
]
