"""Small fixed-capacity LRU cache used by the metrics engine."""

from __future__ import annotations

from collections import OrderedDict
from typing import Callable, Generic, Hashable, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class BoundedCache(Generic[K, V]):
    """LRU cache with an explicit capacity.

    Eviction is deterministic: when full, the least recently *used* entry
    (read or written) is dropped first.
    """

    def __init__(self, capacity: int = 100) -> None:
        self._capacity = max(1, int(capacity))
        self._data: OrderedDict[K, V] = OrderedDict()
        self.hits = 0
        self.misses = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def keys(self) -> list[K]:
        """Keys from least to most recently used."""
        return list(self._data.keys())

    def get_or_compute(self, key: K, compute: Callable[[], V]) -> V:
        if key in self._data:
            self.hits += 1
            self._data.move_to_end(key)
            return self._data[key]

        self.misses += 1
        value = compute()
        self._data[key] = value
        if len(self._data) > self._capacity:
            self._data.popitem(last=False)
        return value

    def clear(self) -> None:
        self._data.clear()
        self.hits = 0
        self.misses = 0
