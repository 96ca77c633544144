"""Thread-safe least-recently-used cache for fitted interpolation models."""

from __future__ import annotations

from collections import OrderedDict
from threading import Lock
from typing import Callable, Dict, Generic, Hashable, Optional, TypeVar

from .constants import DEFAULT_MODEL_CACHE_SIZE

V = TypeVar("V")


class ModelCache(Generic[V]):
    """Bounded key/value store evicting the least recently used entry.

    Values are built outside the lock, so concurrent misses on one key may
    build it twice; the last writer wins.
    """

    def __init__(self, maxsize: int = DEFAULT_MODEL_CACHE_SIZE) -> None:
        if maxsize < 1:
            raise ValueError(f"cache size must be positive: {maxsize}")
        self._maxsize = maxsize
        self._entries: "OrderedDict[Hashable, V]" = OrderedDict()
        self._lock = Lock()
        self._hits = 0
        self._misses = 0

    @property
    def maxsize(self) -> int:
        return self._maxsize

    def get(self, key: Hashable) -> Optional[V]:
        with self._lock:
            try:
                value = self._entries[key]
            except KeyError:
                self._misses += 1
                return None
            self._entries.move_to_end(key)
            self._hits += 1
            return value

    def put(self, key: Hashable, value: V) -> None:
        with self._lock:
            self._entries[key] = value
            self._entries.move_to_end(key)
            while len(self._entries) > self._maxsize:
                self._entries.popitem(last=False)

    def get_or_build(self, key: Hashable, factory: Callable[[], V]) -> V:
        value = self.get(key)
        if value is None:
            value = factory()
            self.put(key, value)
        return value

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def stats(self) -> Dict[str, int]:
        with self._lock:
            return {
                "size": len(self._entries),
                "capacity": self._maxsize,
                "hits": self._hits,
                "misses": self._misses,
            }
