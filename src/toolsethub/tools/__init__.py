"""Built-in tool providers.

Exposes BUILTIN_TOOLSETS, the static id -> provider table consulted first by
the loader. Providers in this package that are not listed there (such as
TextTools) are still reachable through name-derived lookup, because
``toolsethub.tools`` is the default loader namespace. ``text-tools`` is on
the default allow-list; a custom allow-list must name it explicitly.
"""

from __future__ import annotations

from collections.abc import Mapping

from toolsethub.capabilities.registry import get_toolset_metadata
from toolsethub.tools.example import ExampleTools
from toolsethub.tools.example2 import Example2Tools


def _aliases(*classes: type) -> dict[str, tuple[type, ...]]:
    table: dict[str, tuple[type, ...]] = {}
    for cls in classes:
        metadata = get_toolset_metadata(cls)
        if metadata is None:
            continue
        for toolset_id in metadata.ids:
            table[toolset_id] = (cls,)
    return table


BUILTIN_TOOLSETS: Mapping[str, tuple[type, ...]] = {
    **_aliases(ExampleTools, Example2Tools),
    "all": (ExampleTools, Example2Tools),
    "both": (ExampleTools, Example2Tools),
}

__all__ = ["BUILTIN_TOOLSETS", "Example2Tools", "ExampleTools"]
