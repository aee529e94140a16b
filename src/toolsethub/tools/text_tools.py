"""Text helpers, loaded on demand through name-derived lookup ("text-tools")."""

from __future__ import annotations

from typing import Annotated

from toolsethub.capabilities import Param, ToolContext, tool, toolset


@toolset("text-tools", name="Text Tools", description="Small text utilities")
class TextTools:
    def __init__(self) -> None:
        self._shared: ToolContext | None = None

    def set_tool_context(self, context: ToolContext) -> None:
        self._shared = context

    @tool(description="Count whitespace-separated words")
    def word_count(self, text: str) -> int:
        return len(text.split())

    @tool(description="Upper-case text, optionally only the first N characters")
    def to_upper(
        self,
        text: str,
        limit: Annotated[int | None, Param(description="Characters to convert", required=False)] = None,
    ) -> str:
        if limit is None:
            return text.upper()
        return text[:limit].upper() + text[limit:]

    @tool(description="Echo text tagged with the toolset that served the request")
    def echo_context(self, context: ToolContext, text: str) -> str:
        return f"[{context.toolset_id}] {text}"

    @tool(description="Trace id of the context this provider was loaded with")
    def loaded_by(self) -> str:
        return self._shared.trace_id if self._shared is not None else ""
