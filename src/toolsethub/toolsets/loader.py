"""Dynamic toolset loading.

Resolves a toolset id to provider instances with three strategies, tried in
a fixed order (first success wins):

1. BuiltinStrategy   - static table of known ids and aliases
2. NamespaceStrategy - id-derived class name probed in configured packages
                       ("order-tools" -> OrderTools)
3. PluginStrategy    - out-of-band (path, type name) pairs from configuration

Every provider receives the shared ToolContext through its optional
``set_tool_context`` hook and is then introspected once by the schema
builder. The resulting definitions are wrapped in a ResolvedToolset.
"""

from __future__ import annotations

import importlib
import logging
import re
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol

from toolsethub.capabilities.context import CONTEXT_HOOK, ToolContext
from toolsethub.capabilities.registry import get_toolset_metadata, is_tool, is_toolset_class
from toolsethub.capabilities.schema import ToolDefinition, build_schema, definition_from_callable
from toolsethub.core.result import ToolsetHubError, ToolsetLoadError, ToolsetNotFoundError
from toolsethub.core.security import normalize_toolset_id
from toolsethub.toolsets.plugins import load_plugin_type
from toolsethub.toolsets.types import ResolvedToolset
from toolsethub.tools import BUILTIN_TOOLSETS

if TYPE_CHECKING:
    from toolsethub.core.config import LoaderConfig, PluginSpec

logger = logging.getLogger(__name__)

# Ids usable for name-derived lookup: lowercase tokens joined by hyphens/underscores.
_DERIVABLE_ID = re.compile(r"^[a-z][a-z0-9]*(?:[-_][a-z0-9]+)*$")


class LoaderStrategy(Protocol):
    """One way of turning a toolset id into provider instances."""

    name: str

    def find(self, toolset_id: str) -> list[object] | None:
        """Return provider instances, or None when this strategy has no match.

        Raises:
            ToolsetLoadError: When a match was found but could not be built.
        """
        ...


def derive_type_name(toolset_id: str) -> str:
    """Convert a hyphenated id into a class name: "order-tools" -> "OrderTools"."""
    return "".join(part[:1].upper() + part[1:] for part in toolset_id.split("-") if part)


def _instantiate(cls: type, source: str) -> object:
    try:
        return cls()
    except Exception as exc:
        logger.error("Failed to instantiate toolset class %s: %s", cls.__name__, exc)
        raise ToolsetLoadError(
            f"Failed to instantiate {cls.__name__}",
            context={"strategy": source, "cause": str(exc)},
        ) from exc


class BuiltinStrategy:
    name = "builtin"

    def __init__(self, table: Mapping[str, Sequence[type]] | None = None) -> None:
        self._table = dict(BUILTIN_TOOLSETS if table is None else table)

    def find(self, toolset_id: str) -> list[object] | None:
        classes = self._table.get(toolset_id)
        if not classes:
            return None
        logger.debug("Loaded predefined toolset: %s", toolset_id)
        return [_instantiate(cls, self.name) for cls in classes]


class NamespaceStrategy:
    name = "namespace"

    def __init__(self, namespaces: Iterable[str]) -> None:
        self._namespaces = [item for item in namespaces if item]

    def find(self, toolset_id: str) -> list[object] | None:
        if not _DERIVABLE_ID.match(toolset_id):
            return None

        type_name = derive_type_name(toolset_id.replace("_", "-"))
        module_suffix = toolset_id.replace("-", "_")

        for namespace in self._namespaces:
            for module_name in (f"{namespace}.{module_suffix}", namespace):
                module = _import_optional(module_name)
                if module is None:
                    continue
                candidate = getattr(module, type_name, None)
                if candidate is None:
                    continue
                if not is_toolset_class(candidate):
                    logger.warning(
                        "Ignoring %s.%s: not marked with @toolset", module_name, type_name
                    )
                    continue
                logger.info("Dynamically loaded toolset class: %s.%s", module_name, type_name)
                return [_instantiate(candidate, self.name)]

        logger.debug("Toolset class %s not found in %s", type_name, self._namespaces)
        return None


def _import_optional(module_name: str) -> Any | None:
    """Import a module, returning None only when the module itself does not exist."""
    try:
        return importlib.import_module(module_name)
    except ModuleNotFoundError as exc:
        if exc.name is not None and (
            module_name == exc.name or module_name.startswith(f"{exc.name}.")
        ):
            return None
        raise ToolsetLoadError(
            f"Failed to import toolset module {module_name}", context={"cause": str(exc)}
        ) from exc
    except Exception as exc:
        raise ToolsetLoadError(
            f"Failed to import toolset module {module_name}", context={"cause": str(exc)}
        ) from exc


class PluginStrategy:
    name = "plugin"

    def __init__(self, plugins: Mapping[str, PluginSpec], roots: Iterable[Path]) -> None:
        self._plugins = {normalize_toolset_id(key): spec for key, spec in plugins.items()}
        self._roots = list(roots)

    def find(self, toolset_id: str) -> list[object] | None:
        spec = self._plugins.get(toolset_id)
        if spec is None:
            return None
        cls = load_plugin_type(spec.path, spec.type_name, self._roots)
        return [_instantiate(cls, self.name)]


def _inject_context(provider: object, context: ToolContext) -> None:
    hook = getattr(provider, CONTEXT_HOOK, None)
    if not callable(hook):
        return
    try:
        hook(context)
    except Exception as exc:
        raise ToolsetLoadError(
            f"{type(provider).__name__}.{CONTEXT_HOOK} failed", context={"cause": str(exc)}
        ) from exc


def _definitions_for(provider: object, context: ToolContext) -> list[ToolDefinition]:
    if isinstance(provider, ToolDefinition):
        return [provider]
    if is_tool(provider) and not isinstance(provider, type):
        return [definition_from_callable(provider)]

    _inject_context(provider, context)
    try:
        return build_schema(provider)
    except ToolsetHubError:
        raise
    except Exception as exc:
        raise ToolsetLoadError(
            f"Failed to introspect tools of {type(provider).__name__}",
            context={"cause": str(exc)},
        ) from exc


def assemble_toolset(
    toolset_id: str,
    providers: Iterable[object],
    context: ToolContext,
) -> ResolvedToolset:
    """Build a ResolvedToolset from provider instances, functions or definitions.

    Tool names stay unique: a later definition reusing a name is dropped.
    """
    key = normalize_toolset_id(toolset_id)
    providers = list(providers)
    tools: list[ToolDefinition] = []
    seen: set[str] = set()

    for provider in providers:
        for definition in _definitions_for(provider, context):
            if definition.name in seen:
                logger.warning(
                    "Duplicate tool name '%s' in toolset %s; keeping the first definition",
                    definition.name,
                    key,
                )
                continue
            seen.add(definition.name)
            tools.append(definition)

    metadata = next(
        (meta for meta in (get_toolset_metadata(p) for p in providers) if meta is not None),
        None,
    )
    return ResolvedToolset(
        toolset_id=key,
        tools=tuple(tools),
        name=metadata.name if metadata else key,
        description=metadata.description if metadata else "",
    )


class ToolsetLoader:
    """Resolve toolset ids to ResolvedToolset values using ordered strategies."""

    def __init__(
        self,
        strategies: Sequence[LoaderStrategy] | None = None,
        context: ToolContext | None = None,
    ) -> None:
        self._strategies: list[LoaderStrategy] = list(
            strategies if strategies is not None else [BuiltinStrategy()]
        )
        self._context = context or ToolContext()

    @classmethod
    def from_config(cls, config: LoaderConfig, context: ToolContext | None = None) -> ToolsetLoader:
        strategies: list[LoaderStrategy] = [
            BuiltinStrategy(),
            NamespaceStrategy(config.namespaces),
            PluginStrategy(config.plugins, config.plugin_roots),
        ]
        return cls(strategies, context=context)

    @property
    def strategies(self) -> list[LoaderStrategy]:
        return list(self._strategies)

    def load(self, toolset_id: str) -> ResolvedToolset:
        """Load a toolset by id.

        Raises:
            ToolsetNotFoundError: If no strategy resolves the id.
            ToolsetLoadError: If a strategy matched but loading failed.
        """
        key = normalize_toolset_id(toolset_id)
        for strategy in self._strategies:
            providers = strategy.find(key)
            if providers:
                resolved = assemble_toolset(key, providers, self._context)
                logger.info(
                    "Loaded toolset %s via %s strategy (%d tools)",
                    key,
                    strategy.name,
                    len(resolved),
                )
                return resolved

        logger.warning("No loader strategy resolved toolset: %s", key or "<empty>")
        raise ToolsetNotFoundError(
            f"Toolset class not found for: {key or '<empty>'}", context={"toolset": key}
        )


__all__ = [
    "BuiltinStrategy",
    "LoaderStrategy",
    "NamespaceStrategy",
    "PluginStrategy",
    "ToolsetLoader",
    "assemble_toolset",
    "derive_type_name",
]
