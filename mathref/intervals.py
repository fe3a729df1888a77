from __future__ import annotations

from bisect import bisect_left, bisect_right, insort
from typing import Dict, Generic, Iterator, List, Optional, Tuple, TypeVar

V = TypeVar("V")


class IntervalStore(Generic[V]):
    """Sorted int-keyed map answering exact, at-or-below and at-or-above lookups.

    Keys are start lines (or start offsets) of indexed regions. The store is
    filled once per index pass and never patched afterwards, so a sorted key
    list plus ``bisect`` is all the structure needed.
    """

    def __init__(self) -> None:
        self._keys: List[int] = []
        self._values: Dict[int, V] = {}

    def __len__(self) -> int:
        return len(self._keys)

    def __contains__(self, key: int) -> bool:
        return key in self._values

    def set(self, key: int, value: V) -> None:
        if key not in self._values:
            insort(self._keys, key)
        self._values[key] = value

    def get(self, key: int) -> Optional[V]:
        return self._values.get(key)

    def pair_at_or_below(self, key: int) -> Optional[Tuple[int, V]]:
        index = bisect_right(self._keys, key)
        if index == 0:
            return None
        found = self._keys[index - 1]
        return found, self._values[found]

    def pair_at_or_above(self, key: int) -> Optional[Tuple[int, V]]:
        index = bisect_left(self._keys, key)
        if index >= len(self._keys):
            return None
        found = self._keys[index]
        return found, self._values[found]

    def between(self, low: int, high: int) -> List[V]:
        """Values whose keys fall in ``[low, high]``, in key order."""

        start = bisect_left(self._keys, low)
        stop = bisect_right(self._keys, high)
        return [self._values[key] for key in self._keys[start:stop]]

    def keys(self) -> List[int]:
        return list(self._keys)

    def values(self) -> List[V]:
        return [self._values[key] for key in self._keys]

    def items(self) -> Iterator[Tuple[int, V]]:
        for key in self._keys:
            yield key, self._values[key]


__all__ = ["IntervalStore"]
