"""
Bounded LRU entity cache with pinning.

Entries are keyed by any hashable key; the session uses (type name, IRI).
Unpinned entries are evicted least recently used first once the cache
grows past ``max_size``. Pinned entries (entities with uncommitted
mutations) are never evicted and do not count against the bound until
unpinned.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from collections.abc import Hashable, Iterator
from typing import Generic, TypeVar

LOG = logging.getLogger("runtime.cache")

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

DEFAULT_CACHE_SIZE = 1024


class EntityCache(Generic[K, V]):
    """LRU cache with explicit pins."""

    def __init__(self, max_size: int = DEFAULT_CACHE_SIZE) -> None:
        if max_size < 0:
            raise ValueError("max_size must be >= 0")
        self.max_size = max_size
        self._entries: OrderedDict[K, V] = OrderedDict()
        self._pinned: set[K] = set()

    def get(self, key: K) -> V | None:
        entry = self._entries.get(key)
        if entry is not None:
            self._entries.move_to_end(key)
        return entry

    def put(self, key: K, entry: V, pin: bool = False) -> None:
        self._entries[key] = entry
        self._entries.move_to_end(key)
        if pin:
            self._pinned.add(key)
        self._evict()

    def discard(self, key: K) -> None:
        """Drop an entry regardless of its pin."""
        self._entries.pop(key, None)
        self._pinned.discard(key)

    def pin(self, key: K) -> None:
        if key not in self._entries:
            raise KeyError(key)
        self._pinned.add(key)

    def unpin(self, key: K) -> None:
        self._pinned.discard(key)
        self._evict()

    def is_pinned(self, key: K) -> bool:
        return key in self._pinned

    def clear(self) -> None:
        self._entries.clear()
        self._pinned.clear()

    def _evict(self) -> None:
        unpinned = len(self._entries) - len(self._pinned)
        if unpinned <= self.max_size:
            return
        for key in list(self._entries):
            if unpinned <= self.max_size:
                break
            if key in self._pinned:
                continue
            del self._entries[key]
            unpinned -= 1
            LOG.debug("Evicted %s", key)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[K]:
        return iter(list(self._entries))
