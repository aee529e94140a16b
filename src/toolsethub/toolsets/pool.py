"""Bounded, time-expiring pool of resolved toolsets.

This module provides:
- ToolsetPool: thread-safe toolset id -> ResolvedToolset store with
  load-on-miss, a size ceiling and a fixed expiry window

Concurrency model:
- Hits are lock-free reads of an immutable snapshot.
- Every write (miss path, put, evict, clear) holds one pool-wide lock.
  A slow load for one id therefore delays misses for every other id;
  hits are never blocked.
- The loader runs at most once per miss episode per id, and every caller
  racing on that miss receives the same ResolvedToolset.

Expiry is checked lazily on access; there is no background sweep.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from toolsethub.core.result import ToolsetHubError, ToolsetLoadError, ToolsetNotFoundError
from toolsethub.core.security import normalize_toolset_id
from toolsethub.toolsets.types import ResolvedToolset

if TYPE_CHECKING:
    from toolsethub.core.config import CacheConfig

logger = logging.getLogger(__name__)

DEFAULT_MAX_SIZE: Final[int] = 10
DEFAULT_TTL_SECONDS: Final[float] = 30 * 60.0

ToolsetLoaderFn = Callable[[str], ResolvedToolset]


@dataclass(frozen=True)
class _PoolEntry:
    """Cached toolset with its insertion time (pool clock)."""

    value: ResolvedToolset
    inserted_at: float


class ToolsetPool:
    """Thread-safe toolset cache with size-bounded, insertion-ordered eviction.

    Usage:
        pool = ToolsetPool(max_size=10, ttl_seconds=1800)
        toolset = pool.get_or_load("example-tools", loader.load)
    """

    def __init__(
        self,
        max_size: int = DEFAULT_MAX_SIZE,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        *,
        clock: Callable[[], float] = time.monotonic,
        load_timeout: float | None = None,
    ) -> None:
        """Initialize the pool.

        Args:
            max_size: Maximum number of cached toolsets (default: 10)
            ttl_seconds: Seconds after insertion before an entry expires
            clock: Monotonic time source, injectable for tests
            load_timeout: Optional upper bound in seconds for one loader call
        """
        if max_size < 1:
            raise ValueError(f"max_size must be positive, got {max_size}")
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        self._entries: dict[str, _PoolEntry] = {}
        self._max_size = max_size
        self._ttl = ttl_seconds
        self._clock = clock
        self._load_timeout = load_timeout
        self._lock = threading.Lock()
        logger.info(
            "Initialized ToolsetPool with max_size=%d, ttl=%.0fs", max_size, ttl_seconds
        )

    @classmethod
    def from_config(cls, config: CacheConfig) -> ToolsetPool:
        return cls(
            max_size=config.max_size,
            ttl_seconds=config.ttl_seconds,
            load_timeout=config.load_timeout_seconds,
        )

    @property
    def max_size(self) -> int:
        return self._max_size

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def get_or_load(self, toolset_id: str, loader: ToolsetLoaderFn) -> ResolvedToolset:
        """Return the cached toolset, loading it on a miss or after expiry.

        Loader failures propagate and nothing is cached for the id, so the
        next call retries.
        """
        key = normalize_toolset_id(toolset_id)

        entry = self._entries.get(key)
        if entry is not None and not self._is_expired(entry):
            logger.debug("Cache hit for toolset: %s", key)
            entry.value.touch()
            return entry.value

        with self._lock:
            # Double-check after acquiring lock
            entry = self._entries.get(key)
            if entry is not None and not self._is_expired(entry):
                logger.debug("Cache hit after lock for toolset: %s", key)
                entry.value.touch()
                return entry.value

            self._make_room_unlocked(key)
            value = self._call_loader(loader, key)
            if not value.tools:
                logger.warning("Toolset %s resolved to no tools; not caching", key)
                return value

            self._entries[key] = _PoolEntry(value=value, inserted_at=self._clock())
            logger.info("Cached toolset: %s (cache size: %d)", key, len(self._entries))
            return value

    def put(self, toolset_id: str, value: ResolvedToolset) -> None:
        """Insert or replace a toolset, bypassing the loader."""
        key = normalize_toolset_id(toolset_id)
        with self._lock:
            self._make_room_unlocked(key)
            self._entries[key] = _PoolEntry(value=value, inserted_at=self._clock())
            logger.debug("Put toolset in cache: %s", key)

    def get(self, toolset_id: str) -> ResolvedToolset | None:
        """Return the cached toolset without loading; None if absent or expired."""
        key = normalize_toolset_id(toolset_id)
        entry = self._entries.get(key)
        if entry is None:
            return None

        if self._is_expired(entry):
            with self._lock:
                if self._entries.get(key) is entry:
                    del self._entries[key]
            return None

        entry.value.touch()
        return entry.value

    def evict(self, toolset_id: str) -> bool:
        """Remove a toolset; True if an entry was removed."""
        key = normalize_toolset_id(toolset_id)
        with self._lock:
            removed = self._entries.pop(key, None)
        if removed is not None:
            logger.debug("Evicted toolset from cache: %s", key)
            return True
        return False

    def clear(self) -> None:
        """Remove all entries from the pool."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        logger.info("Cleared %d toolsets from cache", count)

    def size(self) -> int:
        return len(self._entries)

    def keys(self) -> set[str]:
        """Ids with a live (unexpired) entry."""
        return {key for key, entry in list(self._entries.items()) if not self._is_expired(entry)}

    def stats(self) -> dict[str, float]:
        """Return pool statistics.

        Returns:
            Dict with 'entries', 'max_size' and 'ttl_seconds'
        """
        with self._lock:
            return {
                "entries": len(self._entries),
                "max_size": self._max_size,
                "ttl_seconds": self._ttl,
            }

    def _is_expired(self, entry: _PoolEntry) -> bool:
        return self._clock() - entry.inserted_at > self._ttl

    def _make_room_unlocked(self, incoming_key: str) -> None:
        """Drop expired entries, then the oldest insert if still full. Must hold lock."""
        self._entries.pop(incoming_key, None)

        expired = [key for key, entry in self._entries.items() if self._is_expired(entry)]
        for key in expired:
            del self._entries[key]
            logger.debug("Evicted expired toolset from cache: %s", key)

        if len(self._entries) >= self._max_size:
            oldest = min(self._entries, key=lambda key: self._entries[key].inserted_at)
            del self._entries[oldest]
            logger.debug("Evicted oldest toolset from cache: %s", oldest)

    def _call_loader(self, loader: ToolsetLoaderFn, key: str) -> ResolvedToolset:
        if self._load_timeout is None:
            return _invoke_loader(loader, key)

        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="toolset-load")
        future = executor.submit(_invoke_loader, loader, key)
        try:
            return future.result(timeout=self._load_timeout)
        except FutureTimeoutError as exc:
            logger.error("Timed out loading toolset %s after %.1fs", key, self._load_timeout)
            raise ToolsetLoadError(
                f"Timed out loading toolset: {key}",
                context={"timeout_seconds": self._load_timeout},
            ) from exc
        finally:
            executor.shutdown(wait=False, cancel_futures=True)


def _invoke_loader(loader: ToolsetLoaderFn, key: str) -> ResolvedToolset:
    try:
        value = loader(key)
    except ToolsetHubError:
        raise
    except Exception as exc:
        logger.error("Failed to load toolset %s: %s", key, exc)
        raise ToolsetLoadError(f"Failed to load toolset: {key}", context={"cause": str(exc)}) from exc
    if value is None:
        raise ToolsetNotFoundError(f"Toolset not found: {key}", context={"toolset": key})
    return value


__all__ = [
    "DEFAULT_MAX_SIZE",
    "DEFAULT_TTL_SECONDS",
    "ToolsetLoaderFn",
    "ToolsetPool",
]
