"""Tool invocation engine.

Locates a tool in a resolved toolset, coerces the caller's loosely typed
arguments to the tool's declared parameter kinds, calls it, and reports the
outcome as a ToolResult envelope. Tool-level failures (unknown tool, bad
arguments, the tool raising) never escape as exceptions.

Coercion rules:
    integer -> ints, integral floats, numeric strings ("42", " 7 ", "3.0")
    number  -> ints, floats, numeric strings
    boolean -> bools, "true"/"false" in any case
    string  -> anything, via str()
Booleans are never accepted where a number is expected.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from toolsethub.capabilities.context import ToolContext
from toolsethub.capabilities.schema import ParamKind, ToolDefinition
from toolsethub.core.result import (
    ArgumentError,
    Err,
    Ok,
    Result,
    ToolInvocationError,
    ToolNotFoundError,
    ToolsetHubError,
)
from toolsethub.toolsets.types import ResolvedToolset

logger = logging.getLogger(__name__)


class ToolResult(BaseModel):
    """Uniform success/error envelope for one invocation."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    is_error: bool = Field(default=False, alias="isError")
    result: Any = None
    message: str | None = None
    error_type: str | None = Field(default=None, alias="errorType")

    @classmethod
    def success(cls, result: Any) -> ToolResult:
        return cls(is_error=False, result=result)

    @classmethod
    def failure(cls, error: ToolsetHubError) -> ToolResult:
        return cls(is_error=True, message=error.message, error_type=type(error).__name__)

    def to_payload(self) -> dict[str, Any]:
        if self.is_error:
            return {"isError": True, "message": self.message, "errorType": self.error_type}
        return {"isError": False, "result": self.result}


def _numeric_text(value: str) -> str | None:
    text = value.strip()
    return text or None


def _coerce_integer(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str) and (text := _numeric_text(value)) is not None:
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            return None
        return int(number) if number.is_integer() else None
    return None


def _coerce_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str) and (text := _numeric_text(value)) is not None:
        try:
            number = float(text)
        except ValueError:
            return None
        return number if math.isfinite(number) else None
    return None


def _coerce_boolean(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered == "true":
            return True
        if lowered == "false":
            return False
    return None


def coerce_value(value: Any, kind: ParamKind, *, param_name: str = "value") -> Result[Any, ArgumentError]:
    """Coerce ``value`` to ``kind``; Err(ArgumentError) when it cannot be parsed."""
    if kind is ParamKind.STRING:
        return Ok(value if isinstance(value, str) else str(value))

    converters = {
        ParamKind.INTEGER: _coerce_integer,
        ParamKind.NUMBER: _coerce_number,
        ParamKind.BOOLEAN: _coerce_boolean,
    }
    coerced = converters[kind](value)
    if coerced is None:
        return Err(
            ArgumentError(
                f"Invalid value for parameter '{param_name}': expected {kind.value}, got {value!r}",
                context={"parameter": param_name},
            )
        )
    return Ok(coerced)


def bind_arguments(
    definition: ToolDefinition,
    arguments: Mapping[str, Any],
    context: ToolContext | None = None,
) -> Result[dict[str, Any], ArgumentError]:
    """Map caller arguments onto the tool's parameters, in schema order."""
    bound: dict[str, Any] = {}
    for param in definition.params:
        value = arguments.get(param.name)
        if value is None:
            if param.required:
                return Err(
                    ArgumentError(
                        f"Required parameter missing: {param.name}",
                        context={"tool": definition.name, "parameter": param.name},
                    )
                )
            if not param.has_default:
                bound[param.name] = None
            continue

        match coerce_value(value, param.kind, param_name=param.name):
            case Err(error):
                return Err(error)
            case Ok(coerced):
                bound[param.name] = coerced

    if definition.context_param is not None:
        bound[definition.context_param] = context
    return Ok(bound)


def invoke_tool(
    resolved: ResolvedToolset,
    tool_name: str,
    arguments: Mapping[str, Any] | None = None,
    context: ToolContext | None = None,
) -> ToolResult:
    """Invoke ``tool_name`` from ``resolved`` and wrap the outcome in a ToolResult."""
    definition = resolved.find(tool_name)
    if definition is None:
        logger.warning("Tool %s not found in toolset: %s", tool_name, resolved.toolset_id)
        return ToolResult.failure(
            ToolNotFoundError(
                f"Tool not found: {tool_name}",
                context={"toolset": resolved.toolset_id},
            )
        )

    match bind_arguments(definition, arguments or {}, context):
        case Err(error):
            logger.info("Rejected call to %s: %s", tool_name, error.message)
            return ToolResult.failure(error)
        case Ok(kwargs):
            pass

    try:
        result = definition.func(**kwargs)
    except Exception as exc:
        logger.exception("Unhandled error in tool %s", tool_name)
        return ToolResult.failure(
            ToolInvocationError(
                f"Tool execution failed: {exc}",
                context={"tool": tool_name, "toolset": resolved.toolset_id},
            )
        )
    return ToolResult.success(result)


__all__ = [
    "ToolResult",
    "bind_arguments",
    "coerce_value",
    "invoke_tool",
]
