"""Pairwise distance table with sorted nearest-neighbour queries.

Built once per shape set as an N x (N-1) adjacency sorted by distance.
The distance function is arbitrary, so a second matrix can be derived
from a first one (e.g. distance divided by the radius sum).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, Hashable, Iterable, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Entry(Generic[T]):
    distance: float
    ref: T


class DistanceMatrix(Generic[T]):
    def __init__(
        self,
        items: Iterable[T],
        dist: Callable[[T, T], float],
        key: Callable[[T], Hashable] = lambda item: item,
    ) -> None:
        self.dist = dist
        self._key = key
        self._items: list[T] = list(items)
        self._rows: dict[Hashable, list[Entry[T]]] = {}
        for a in self._items:
            row = [Entry(float(dist(a, b)), b) for b in self._items if key(b) != key(a)]
            # Stable sort keeps input order among equal distances
            row.sort(key=lambda e: e.distance)
            self._rows[key(a)] = row

    def between(self, a: T, b: T) -> float | None:
        kb = self._key(b)
        for e in self._rows.get(self._key(a), []):
            if self._key(e.ref) == kb:
                return e.distance
        return None

    def knn(self, a: T, k: int | None = None) -> list[Entry[T]]:
        """k nearest entries (all N-1 by default). Returns a copy."""
        row = self._rows.get(self._key(a), [])
        if k is None:
            return list(row)
        return row[:k]

    def nn(self, a: T) -> Entry[T] | None:
        row = self._rows.get(self._key(a), [])
        return row[0] if row else None

    def nn_within(self, a: T, max_distance: float) -> list[Entry[T]]:
        out = []
        for e in self._rows.get(self._key(a), []):
            if e.distance > max_distance:
                break
            out.append(e)
        return out

    def where(self, a: T, predicate: Callable[[Entry[T]], bool]) -> list[Entry[T]]:
        return [e for e in self._rows.get(self._key(a), []) if predicate(e)]

    @property
    def items(self) -> list[T]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)
