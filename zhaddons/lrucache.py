"""A bounded mapping that drops the least recently used entry."""

from __future__ import annotations

from collections import OrderedDict
from collections.abc import Hashable
from typing import Generic, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class LRUCache(Generic[K, V]):
    """Least recently used cache; ``find`` refreshes an entry, ``in`` does not."""

    def __init__(self, capacity: int = 80) -> None:
        self._capacity = capacity
        self._data: OrderedDict[K, V] = OrderedDict()

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    @property
    def capacity(self) -> int:
        """Maximum number of entries."""
        return self._capacity

    def insert(self, key: K, value: V) -> V | None:
        """Add a new entry and return its value; existing keys are left alone."""
        if key in self._data:
            return None
        if self._data and len(self._data) >= self._capacity:
            self._data.popitem(last=False)
        self._data[key] = value
        return value

    def erase(self, key: K) -> None:
        """Remove ``key`` if present."""
        self._data.pop(key, None)

    def find(self, key: K) -> V | None:
        """Return the value for ``key`` and mark it most recently used."""
        if key not in self._data:
            return None
        self._data.move_to_end(key)
        return self._data[key]

    def clear(self) -> None:
        """Remove every entry."""
        self._data.clear()