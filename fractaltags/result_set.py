"""Bounded collection of (index, squared distance) search results."""

from __future__ import annotations

import heapq
import sys
from typing import Optional

DBL_MAX = sys.float_info.max


class ResultSet:
    """Collects the results of a k-nearest or a radius search.

    When ``max_value`` is positive the set works in radius mode: every pair
    whose distance is below ``max_value`` is kept and pairs at or beyond it
    are dropped.  Otherwise it keeps the ``max_size`` smallest distances in a
    max-heap; ``max_size=None`` means no limit.
    """

    def __init__(self, max_size: Optional[int] = None, max_value: float = -1.0):
        if max_size is not None and max_size <= 0:
            raise ValueError("max_size must be a positive number or None")
        self.max_size = max_size
        self.radius_search = max_value > 0
        self.max_value = max_value if self.radius_search else DBL_MAX
        self._found: list[tuple[int, float]] = []
        self._heap: list[tuple[float, int]] = []

    def __len__(self) -> int:
        return len(self._found) if self.radius_search else len(self._heap)

    def push(self, index: int, distance: float) -> None:
        """Offer a candidate to the set."""
        if self.radius_search:
            if distance < self.max_value:
                self._found.append((index, distance))
            return
        if self.max_size is not None and len(self._heap) >= self.max_size:
            if distance < -self._heap[0][0]:
                heapq.heapreplace(self._heap, (-distance, index))
            return
        heapq.heappush(self._heap, (-distance, index))

    def worst_dist(self) -> float:
        """Distance a candidate must beat to enter the set."""
        if self.radius_search:
            return self.max_value
        if self.max_size is None or len(self._heap) < self.max_size:
            return DBL_MAX
        return -self._heap[0][0]

    def top(self) -> float:
        """Largest distance currently held."""
        if self.radius_search:
            if not self._found:
                raise IndexError("result set is empty")
            return max(distance for _, distance in self._found)
        if not self._heap:
            raise IndexError("result set is empty")
        return -self._heap[0][0]

    def results(self, sorted: bool = True) -> list[tuple[int, float]]:
        """The pairs held, ordered by ascending distance when ``sorted``."""
        if self.radius_search:
            pairs = list(self._found)
        else:
            pairs = [(index, -neg) for neg, index in self._heap]
        if sorted and len(pairs) > 1:
            pairs.sort(key=lambda pair: pair[1])
        return pairs