"""MCP transport for the toolset dispatcher.

The server does not register dispatched tools one by one. It exposes three
meta-tools that take the toolset id as an argument, so a single FastMCP
instance can serve any allowed toolset without restarting.
"""

from __future__ import annotations

from toolsethub.core.console import get_logger

logger = get_logger("toolsethub.mcp")

__all__ = ["logger"]
