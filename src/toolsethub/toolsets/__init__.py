"""Toolsets package - on-demand resolution, caching and invocation.

Dependency order (leaves first): types -> pool / plugins -> loader ->
engine -> dispatcher.
"""

from __future__ import annotations

from toolsethub.toolsets.dispatcher import ToolsetDispatcher, build_dispatcher
from toolsethub.toolsets.engine import ToolResult, coerce_value, invoke_tool
from toolsethub.toolsets.loader import (
    BuiltinStrategy,
    LoaderStrategy,
    NamespaceStrategy,
    PluginStrategy,
    ToolsetLoader,
    derive_type_name,
)
from toolsethub.toolsets.pool import ToolsetPool
from toolsethub.toolsets.types import ResolvedToolset

__all__ = [
    "BuiltinStrategy",
    "LoaderStrategy",
    "NamespaceStrategy",
    "PluginStrategy",
    "ResolvedToolset",
    "ToolResult",
    "ToolsetDispatcher",
    "ToolsetLoader",
    "ToolsetPool",
    "build_dispatcher",
    "coerce_value",
    "derive_type_name",
    "invoke_tool",
]
