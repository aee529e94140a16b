"""
Allow-list gate for toolset resolution.

Every toolset id is checked here before the loader sees it. A rejected id
never reaches the loader and is never cached, positively or negatively.

Usage:
    from toolsethub.core.security import AllowListPolicy

    policy = AllowListPolicy.from_ids(["calc-tools"])
    policy.is_allowed(" Calc-Tools ")   # True
    policy.require("unknown-tools")     # raises SecurityError
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from toolsethub.core.result import SecurityError

logger = logging.getLogger(__name__)


def normalize_toolset_id(raw: str | None) -> str:
    """Return the canonical (trimmed, lowercased) form of a toolset id."""
    if raw is None:
        return ""
    return raw.strip().lower()


@dataclass(frozen=True)
class AllowListPolicy:
    """Immutable set of toolset ids permitted for resolution.

    An empty policy allows every id. That mode is meant for development and
    is announced once via log_startup_warning(), never per call.
    """

    allowed: frozenset[str] = frozenset()

    @classmethod
    def from_ids(cls, ids: Iterable[str]) -> AllowListPolicy:
        normalized = (normalize_toolset_id(item) for item in ids)
        return cls(allowed=frozenset(item for item in normalized if item))

    @property
    def allows_all(self) -> bool:
        return not self.allowed

    def is_allowed(self, toolset_id: str | None) -> bool:
        if self.allows_all:
            return True
        return normalize_toolset_id(toolset_id) in self.allowed

    def require(self, toolset_id: str | None) -> str:
        """Return the normalized id, or raise SecurityError if it is not allowed."""
        normalized = normalize_toolset_id(toolset_id)
        if not self.is_allowed(normalized):
            logger.warning("Toolset %s is not in allowed list, rejecting", normalized or "<empty>")
            raise SecurityError(
                f"Toolset {normalized or '<empty>'} is not allowed",
                context={"toolset": normalized},
            )
        return normalized

    def log_startup_warning(self, log: logging.Logger | None = None) -> None:
        target = log or logger
        if self.allows_all:
            target.warning("SECURITY WARNING: No toolset allow-list configured; all toolsets are allowed.")
            target.warning("This is not recommended for production environments.")
        else:
            target.info("Toolset allow-list enabled: %s", ", ".join(sorted(self.allowed)))


__all__ = [
    "AllowListPolicy",
    "normalize_toolset_id",
]
