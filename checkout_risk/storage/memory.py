"""In-memory counter store.

Implements the same async interface as the Redis store so the engine can
run without a Redis server. State lives in this process only and is lost on
restart, so it suits tests and local development, not multi-instance
deployments. Each method runs without awaiting, which keeps every operation
atomic on the event loop.
"""

import bisect
import time
from typing import Callable, Dict, List, Optional, Tuple

from checkout_risk.storage.base import Number, ScoreBound


class MemoryCounterStore:
    """Process-local counters, lists and sorted sets with key expiry."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._values: Dict[str, Number] = {}
        self._lists: Dict[str, List[str]] = {}
        # Sorted sets kept as (score, member) pairs in score order
        self._sorted_sets: Dict[str, List[Tuple[float, str]]] = {}
        self._expires_at: Dict[str, float] = {}

    def _purge_if_expired(self, key: str) -> None:
        deadline = self._expires_at.get(key)
        if deadline is not None and self._clock() >= deadline:
            self._expires_at.pop(key, None)
            self._values.pop(key, None)
            self._lists.pop(key, None)
            self._sorted_sets.pop(key, None)

    async def increment(self, key: str, by: Number = 1) -> Number:
        self._purge_if_expired(key)
        value = self._values.get(key, 0) + by
        self._values[key] = value
        return value

    async def get(self, key: str) -> Optional[str]:
        self._purge_if_expired(key)
        value = self._values.get(key)
        return None if value is None else str(value)

    async def expire(self, key: str, seconds: int) -> None:
        self._purge_if_expired(key)
        if key in self._values or key in self._lists or key in self._sorted_sets:
            self._expires_at[key] = self._clock() + seconds

    def ttl(self, key: str) -> Optional[float]:
        """Seconds until ``key`` expires, or None if it never does."""
        self._purge_if_expired(key)
        deadline = self._expires_at.get(key)
        return None if deadline is None else deadline - self._clock()

    async def append_to_list(self, key: str, entry: str) -> None:
        self._purge_if_expired(key)
        self._lists.setdefault(key, []).insert(0, entry)

    async def list_range(self, key: str, start: int = 0, stop: int = -1) -> List[str]:
        self._purge_if_expired(key)
        items = self._lists.get(key, [])
        # Redis LRANGE treats stop as inclusive
        end = None if stop == -1 else stop + 1
        return items[start:end]

    async def add_to_sorted_set(self, key: str, score: float, member: str) -> None:
        self._purge_if_expired(key)
        members = self._sorted_sets.setdefault(key, [])
        members[:] = [(s, m) for s, m in members if m != member]
        bisect.insort(members, (float(score), member))

    async def count_sorted_set_members(
        self,
        key: str,
        min_score: ScoreBound = "-inf",
        max_score: ScoreBound = "+inf",
    ) -> int:
        self._purge_if_expired(key)
        low, high = float(min_score), float(max_score)
        return sum(1 for score, _ in self._sorted_sets.get(key, []) if low <= score <= high)

    async def ping(self) -> bool:
        return True
