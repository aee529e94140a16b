"""Explicit context handed to tool providers and tools.

A shared, request-independent ToolContext is given to each provider once, at
load time, through its ``set_tool_context`` hook. Tools that declare a
parameter annotated with ToolContext receive a per-request copy at call time,
so no thread-local state is involved.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any
from uuid import uuid4

# Name of the optional provider hook called by the loader.
CONTEXT_HOOK = "set_tool_context"


@dataclass(frozen=True)
class ToolContext:
    """Immutable context visible to tools."""

    trace_id: str = field(default_factory=lambda: f"hub-{uuid4().hex[:8]}")
    toolset_id: str | None = None
    settings: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def for_toolset(self, toolset_id: str) -> ToolContext:
        """Return a copy scoped to a single toolset request."""
        return replace(self, toolset_id=toolset_id)


__all__ = ["CONTEXT_HOOK", "ToolContext"]
