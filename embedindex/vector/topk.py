"""
Bounded top-K selection over a stream of scored candidates.
"""

import heapq
import itertools
from typing import Any, Generic, List, Optional, Tuple, TypeVar

T = TypeVar("T")


class TopKSelector(Generic[T]):
    """
    Keeps the K highest-scoring candidates seen so far in a min-heap.

    The heap minimum is the eviction candidate; a new candidate replaces it
    only when its score is strictly greater. Order among equal scores is not
    guaranteed.
    """

    def __init__(self, k: int):
        if k < 1:
            raise ValueError("k must be >= 1")
        self.k = k
        self._heap: List[Tuple[float, int, T]] = []
        # breaks score ties inside the heap so items are never compared
        self._counter = itertools.count()

    def __len__(self) -> int:
        return len(self._heap)

    def peek_min(self) -> Optional[Tuple[float, T]]:
        if not self._heap:
            return None
        score, _, item = self._heap[0]
        return score, item

    def offer(self, score: float, item: T) -> bool:
        """Offer a candidate; returns True if it is now held."""
        entry = (score, next(self._counter), item)
        if len(self._heap) < self.k:
            heapq.heappush(self._heap, entry)
            return True
        if score > self._heap[0][0]:
            heapq.heapreplace(self._heap, entry)
            return True
        return False

    def drain(self) -> List[Tuple[float, Any]]:
        """Empty the selector and return (score, item) pairs, highest score first."""
        ascending = []
        while self._heap:
            score, _, item = heapq.heappop(self._heap)
            ascending.append((score, item))
        ascending.reverse()
        return ascending
