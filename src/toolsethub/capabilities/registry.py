"""Tool and toolset markers.

This module is the single source of truth for:
- The @tool marker that exposes a provider method as a tool
- The @toolset marker that makes a provider class loadable
- Param metadata attached through typing.Annotated
- Metadata retrieval helpers used by the schema builder and the loader

Usage:
    from typing import Annotated

    from toolsethub.capabilities.registry import Param, tool, toolset

    @toolset("calc-tools", name="Calculator")
    class CalcTools:
        @tool(description="Add two integers")
        def add(self, a: int, b: Annotated[int, Param(description="Addend")]) -> int:
            return a + b
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeGuard, TypeVar

from toolsethub.core.security import normalize_toolset_id

C = TypeVar("C", bound=Callable[..., Any])
T = TypeVar("T", bound=type)

# Attribute names used to store marker metadata
TOOL_METADATA_ATTR = "__toolsethub_tool__"
TOOLSET_METADATA_ATTR = "__toolsethub_toolset__"


@dataclass(frozen=True)
class Param:
    """Per-parameter metadata, attached with ``Annotated[T, Param(...)]``.

    Parameters without a Param are required.
    """

    description: str | None = None
    required: bool = True


@dataclass(frozen=True)
class ToolMetadata:
    name: str | None = None
    description: str | None = None


@dataclass(frozen=True)
class ToolsetMetadata:
    ids: tuple[str, ...]
    name: str
    description: str


def tool(*, name: str | None = None, description: str | None = None) -> Callable[[C], C]:
    """Mark a provider method (or plain function) as a tool."""

    def decorator(fn: C) -> C:
        setattr(fn, TOOL_METADATA_ATTR, ToolMetadata(name=name or None, description=description or None))
        return fn

    return decorator


def toolset(*ids: str, name: str = "", description: str = "") -> Callable[[T], T]:
    """Mark a class as a loadable tool provider.

    Only marked classes are ever instantiated by name-derived or plugin
    loading; an unmarked attribute with a matching name is ignored.
    """

    def decorator(cls: T) -> T:
        metadata = ToolsetMetadata(
            ids=tuple(key for key in map(normalize_toolset_id, ids) if key),
            name=name or cls.__name__,
            description=description or f"Tools from {cls.__name__}",
        )
        setattr(cls, TOOLSET_METADATA_ATTR, metadata)
        return cls

    return decorator


def is_tool(obj: Any) -> TypeGuard[Callable[..., Any]]:
    """Check if an object is decorated with @tool."""
    if not callable(obj):
        return False
    return isinstance(getattr(obj, TOOL_METADATA_ATTR, None), ToolMetadata)


def get_tool_metadata(obj: object) -> ToolMetadata | None:
    if not callable(obj):
        return None
    metadata = getattr(obj, TOOL_METADATA_ATTR, None)
    return metadata if isinstance(metadata, ToolMetadata) else None


def is_toolset_class(obj: Any) -> TypeGuard[type]:
    """Check if an object is a class decorated with @toolset."""
    return isinstance(obj, type) and isinstance(
        obj.__dict__.get(TOOLSET_METADATA_ATTR), ToolsetMetadata
    )


def get_toolset_metadata(obj: object) -> ToolsetMetadata | None:
    cls = obj if isinstance(obj, type) else type(obj)
    metadata = getattr(cls, TOOLSET_METADATA_ATTR, None)
    return metadata if isinstance(metadata, ToolsetMetadata) else None


__all__ = [
    "TOOLSET_METADATA_ATTR",
    "TOOL_METADATA_ATTR",
    "Param",
    "ToolMetadata",
    "ToolsetMetadata",
    "get_tool_metadata",
    "get_toolset_metadata",
    "is_tool",
    "is_toolset_class",
    "tool",
    "toolset",
]
