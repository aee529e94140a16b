"""Resolved toolset value type."""

from __future__ import annotations

import time
from dataclasses import dataclass, field

from toolsethub.capabilities.schema import ToolDefinition, ToolDescriptor


@dataclass
class ResolvedToolset:
    """Tools resolved for one toolset id.

    The tool tuple never changes after construction; ``last_accessed_at`` is
    the only field updated afterwards, on every pool read.
    """

    toolset_id: str
    tools: tuple[ToolDefinition, ...]
    name: str = ""
    description: str = ""
    created_at: float = field(default_factory=time.time, compare=False)
    last_accessed_at: float = field(default=0.0, compare=False)

    def __post_init__(self) -> None:
        self.tools = tuple(self.tools)
        if not self.last_accessed_at:
            self.last_accessed_at = self.created_at

    def touch(self) -> None:
        self.last_accessed_at = time.time()

    def find(self, tool_name: str) -> ToolDefinition | None:
        """First tool with a matching name, or None."""
        return next((item for item in self.tools if item.name == tool_name), None)

    def tool_names(self) -> list[str]:
        return [item.name for item in self.tools]

    def descriptors(self) -> list[ToolDescriptor]:
        return [item.descriptor() for item in self.tools]

    def __len__(self) -> int:
        return len(self.tools)


__all__ = ["ResolvedToolset"]
