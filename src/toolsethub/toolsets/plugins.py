"""Isolated loading of external toolset providers.

Plugin files are named out of band in configuration, never derived from a
request. Loading is restricted in three ways:

- The file must resolve (symlinks included) inside a configured plugin root.
- The module executes under a private, hashed name. It is present in
  ``sys.modules`` only while its body runs and is removed afterwards, so a
  plugin cannot shadow or be imported as a real module.
- Only a class marked with @toolset is returned; any other symbol is refused.
"""

from __future__ import annotations

import hashlib
import importlib.util
import logging
import sys
from collections.abc import Iterable
from pathlib import Path

from toolsethub.capabilities.registry import is_toolset_class
from toolsethub.core.result import SecurityError, ToolsetLoadError

logger = logging.getLogger(__name__)

_PLUGIN_MODULE_PREFIX = "_toolsethub_plugin_"


def resolve_plugin_path(path: Path, roots: Iterable[Path]) -> Path:
    """Resolve a plugin file and confirm it lives under one of ``roots``.

    Raises:
        SecurityError: If the file escapes every configured root.
        ToolsetLoadError: If the file is missing or is not a Python source file.
    """
    resolved = path.expanduser().resolve()
    resolved_roots = [root.expanduser().resolve() for root in roots]

    if not any(resolved.is_relative_to(root) for root in resolved_roots):
        raise SecurityError(
            f"Plugin path {resolved} is outside the configured plugin roots",
            context={"roots": ", ".join(str(root) for root in resolved_roots) or "<none>"},
        )
    if resolved.suffix != ".py":
        raise ToolsetLoadError(f"Plugin file must be a .py source file: {resolved}")
    if not resolved.is_file():
        raise ToolsetLoadError(f"Plugin file not found: {resolved}")
    return resolved


def _private_module_name(path: Path) -> str:
    digest = hashlib.sha256(str(path).encode("utf-8")).hexdigest()[:16]
    return f"{_PLUGIN_MODULE_PREFIX}{digest}"


def load_plugin_type(path: Path, type_name: str, roots: Iterable[Path]) -> type:
    """Import ``type_name`` from the plugin file at ``path``.

    Returns:
        The @toolset-marked provider class.
    """
    resolved = resolve_plugin_path(path, roots)
    module_name = _private_module_name(resolved)

    spec = importlib.util.spec_from_file_location(module_name, resolved)
    if spec is None or spec.loader is None:
        raise ToolsetLoadError(f"Cannot create an import spec for plugin {resolved}")

    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception as exc:
        logger.error("Plugin module %s failed to import: %s", resolved, exc)
        raise ToolsetLoadError(
            f"Failed to import plugin {resolved}", context={"cause": str(exc)}
        ) from exc
    finally:
        sys.modules.pop(module_name, None)

    candidate = getattr(module, type_name, None)
    if not is_toolset_class(candidate):
        raise ToolsetLoadError(
            f"Plugin {resolved} has no @toolset class named {type_name}",
            context={"type_name": type_name},
        )

    logger.info("Loaded toolset plugin: %s -> %s", resolved, type_name)
    return candidate


__all__ = ["load_plugin_type", "resolve_plugin_path"]
