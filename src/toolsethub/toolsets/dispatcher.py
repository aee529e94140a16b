"""Request-scoped toolset dispatcher.

The dispatcher is the only entry point transports need:

    dispatcher = build_dispatcher(config)
    tools = dispatcher.resolve("example-tools")
    result = dispatcher.invoke("example-tools", "calculator", {"operation": "add", ...})

Every resolve/invoke/register normalizes the id and passes the allow-list
gate before the pool or the loader is touched.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any, Protocol

from toolsethub.capabilities.context import ToolContext
from toolsethub.capabilities.schema import ToolDescriptor
from toolsethub.core.config import AppConfig
from toolsethub.core.result import ToolsetLoadError
from toolsethub.core.security import AllowListPolicy, normalize_toolset_id
from toolsethub.toolsets.engine import ToolResult, invoke_tool
from toolsethub.toolsets.loader import ToolsetLoader, assemble_toolset
from toolsethub.toolsets.pool import ToolsetPool
from toolsethub.toolsets.types import ResolvedToolset

logger = logging.getLogger(__name__)


class SupportsLoad(Protocol):
    def load(self, toolset_id: str) -> ResolvedToolset: ...


class ToolsetDispatcher:
    """Resolve toolset ids through the gate and pool, and invoke their tools."""

    def __init__(
        self,
        policy: AllowListPolicy,
        loader: SupportsLoad,
        pool: ToolsetPool,
        context: ToolContext | None = None,
    ) -> None:
        self._policy = policy
        self._loader = loader
        self._pool = pool
        self._context = context or ToolContext()

    @property
    def policy(self) -> AllowListPolicy:
        return self._policy

    @property
    def pool(self) -> ToolsetPool:
        return self._pool

    @property
    def context(self) -> ToolContext:
        return self._context

    def resolve_toolset(self, toolset_id: str) -> ResolvedToolset:
        """Return the ResolvedToolset for an id, loading it on a miss.

        Raises:
            SecurityError: If the id is not on the allow-list (nothing is loaded).
            ToolsetNotFoundError: If no loader strategy resolves the id.
            ToolsetLoadError: If loading failed.
        """
        key = self._policy.require(toolset_id)
        return self._pool.get_or_load(key, self._loader.load)

    def resolve(self, toolset_id: str) -> list[ToolDescriptor]:
        """Describe the tools of a toolset (name, description, inputSchema)."""
        return self.resolve_toolset(toolset_id).descriptors()

    def invoke(
        self,
        toolset_id: str,
        tool_name: str,
        arguments: Mapping[str, Any] | None = None,
        context: ToolContext | None = None,
    ) -> ToolResult:
        """Invoke a tool; tool-level failures come back as error envelopes.

        ``context`` defaults to the shared context scoped to this toolset.
        """
        resolved = self.resolve_toolset(toolset_id)
        call_context = context or self._context.for_toolset(resolved.toolset_id)
        return invoke_tool(resolved, tool_name, arguments, call_context)

    def register(self, toolset_id: str, providers: Iterable[object]) -> ResolvedToolset:
        """Insert a toolset directly, bypassing the loader.

        ``providers`` may mix provider instances, @tool functions and
        ToolDefinition values. The write goes through the pool lock, so it is
        ordered with respect to concurrent loads of the same id.
        """
        key = self._policy.require(toolset_id)
        resolved = assemble_toolset(key, providers, self._context)
        if not resolved.tools:
            raise ToolsetLoadError(f"No tools to register for toolset: {key}")
        self._pool.put(key, resolved)
        logger.info("Registered toolset: %s with %d tools", key, len(resolved))
        return resolved

    def is_registered(self, toolset_id: str) -> bool:
        return self._pool.get(toolset_id) is not None

    def list_ids(self) -> set[str]:
        return self._pool.keys()

    def evict(self, toolset_id: str) -> bool:
        removed = self._pool.evict(toolset_id)
        if removed:
            logger.info("Unregistered toolset: %s", normalize_toolset_id(toolset_id))
        return removed

    def status(self) -> dict[str, Any]:
        return {
            "allowedToolsets": sorted(self._policy.allowed),
            "allowAll": self._policy.allows_all,
            "registeredToolsets": sorted(self.list_ids()),
            "cache": self._pool.stats(),
        }


def build_dispatcher(config: AppConfig, *, context: ToolContext | None = None) -> ToolsetDispatcher:
    """Wire gate, loader and pool from configuration.

    Emits the one-time allow-list warning when the allow-list is empty.
    """
    policy = AllowListPolicy.from_ids(config.allowed_toolsets)
    policy.log_startup_warning()
    shared = context or ToolContext(settings={"log_level": config.log_level})
    loader = ToolsetLoader.from_config(config.loader, context=shared)
    pool = ToolsetPool.from_config(config.cache)
    return ToolsetDispatcher(policy, loader, pool, context=shared)


__all__ = ["SupportsLoad", "ToolsetDispatcher", "build_dispatcher"]
