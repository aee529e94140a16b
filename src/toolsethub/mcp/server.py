"""MCP server implementation using FastMCP.

Creates and configures the MCP server with:
    - Configuration loading
    - Dispatcher construction (allow-list, loader, pool)
    - Registration of the toolset meta-tools
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Awaitable, Callable
from typing import Any, Protocol

from mcp.server.fastmcp import FastMCP

from toolsethub.core.config import load_config
from toolsethub.core.result import ToolsetHubError
from toolsethub.core.security import normalize_toolset_id
from toolsethub.mcp import logger
from toolsethub.toolsets.dispatcher import ToolsetDispatcher, build_dispatcher


class SupportsAddTool(Protocol):
    def add_tool(self, fn: Callable[..., Any], *, name: str | None = ..., description: str | None = ...) -> Any: ...


def _format_error(error_code: str, message: str) -> str:
    payload = {"error": error_code, "message": message}
    return json.dumps(payload)


def list_toolset_json(dispatcher: ToolsetDispatcher, toolset: str) -> str:
    """Describe the tools of ``toolset`` as JSON text."""
    try:
        descriptors = dispatcher.resolve(toolset)
    except ToolsetHubError as exc:
        return _format_error(type(exc).__name__, exc.message)
    payload = {
        "toolset": normalize_toolset_id(toolset),
        "tools": [descriptor.model_dump(by_alias=True) for descriptor in descriptors],
    }
    return json.dumps(payload)


def call_tool_json(
    dispatcher: ToolsetDispatcher,
    toolset: str,
    tool: str,
    arguments: dict[str, Any] | None = None,
) -> str:
    """Invoke ``tool`` from ``toolset`` and return the result envelope as JSON text."""
    try:
        result = dispatcher.invoke(toolset, tool, arguments or {})
    except ToolsetHubError as exc:
        return _format_error(type(exc).__name__, exc.message)
    return json.dumps(result.to_payload(), default=str)


def status_json(dispatcher: ToolsetDispatcher) -> str:
    return json.dumps(dispatcher.status())


def register_gateway_tools(mcp: SupportsAddTool, dispatcher: ToolsetDispatcher) -> None:
    """Register the list/call/status meta-tools bound to ``dispatcher``."""

    async def list_toolset(toolset: str) -> str:
        return await asyncio.to_thread(list_toolset_json, dispatcher, toolset)

    async def call_toolset_tool(
        toolset: str, tool: str, arguments: dict[str, Any] | None = None
    ) -> str:
        return await asyncio.to_thread(call_tool_json, dispatcher, toolset, tool, arguments)

    async def toolset_status() -> str:
        return status_json(dispatcher)

    tools: list[tuple[Callable[..., Awaitable[str]], str]] = [
        (list_toolset, "List the tools of an allowed toolset with their input schemas."),
        (call_toolset_tool, "Call a tool from an allowed toolset with JSON arguments."),
        (toolset_status, "Show the allow-list, cached toolsets and cache settings."),
    ]
    for func, description in tools:
        mcp.add_tool(func, name=func.__name__, description=description)

    logger.info("Registered %d toolset gateway tools", len(tools))


def create_server(dispatcher: ToolsetDispatcher | None = None) -> FastMCP:
    if dispatcher is None:
        cfg, meta = load_config()
        if meta.error:
            logger.error("Failed to load config from %s: %s", meta.path, meta.error)
        dispatcher = build_dispatcher(cfg)
    server = FastMCP("toolsethub")
    register_gateway_tools(server, dispatcher)
    return server


def main() -> None:
    create_server().run()


if __name__ == "__main__":
    main()
