"""toolsethub - on-demand toolset resolution and dispatch for MCP-style tool servers.

Toolsets are discovered and cached the first time a request names them,
instead of being registered eagerly when the process starts.

Exports:
    __version__: Package version string.
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.3.0"
