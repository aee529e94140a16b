"""Capabilities package - tool markers, context and schema introspection.

This package defines what a tool is: how providers mark their methods, how
those methods are described to callers, and the context handed to them.
"""

from __future__ import annotations

from toolsethub.capabilities.context import CONTEXT_HOOK, ToolContext
from toolsethub.capabilities.registry import (
    Param,
    ToolMetadata,
    ToolsetMetadata,
    get_tool_metadata,
    get_toolset_metadata,
    is_tool,
    is_toolset_class,
    tool,
    toolset,
)
from toolsethub.capabilities.schema import (
    ParamKind,
    ToolDefinition,
    ToolDescriptor,
    ToolParam,
    build_schema,
    definition_from_callable,
)

__all__ = [
    "CONTEXT_HOOK",
    "Param",
    "ParamKind",
    "ToolContext",
    "ToolDefinition",
    "ToolDescriptor",
    "ToolMetadata",
    "ToolParam",
    "ToolsetMetadata",
    "build_schema",
    "definition_from_callable",
    "get_tool_metadata",
    "get_toolset_metadata",
    "is_tool",
    "is_toolset_class",
    "tool",
    "toolset",
]
