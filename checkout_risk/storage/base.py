"""Interface shared by the counter store implementations."""

from typing import Optional, Protocol, Union

Number = Union[int, float]
ScoreBound = Union[float, str]


class CounterStore(Protocol):
    """Atomic counters, lists and sorted sets shared across engine instances.

    Every mutating call is a single atomic store operation. Implementations
    raise ``CounterStoreError`` when the backend is unavailable.
    """

    async def increment(self, key: str, by: Number = 1) -> Number:
        """Add ``by`` to the counter and return the new value."""
        ...

    async def get(self, key: str) -> Optional[str]:
        ...

    async def expire(self, key: str, seconds: int) -> None:
        ...

    async def append_to_list(self, key: str, entry: str) -> None:
        """Push ``entry`` onto the head of the list."""
        ...

    async def list_range(self, key: str, start: int = 0, stop: int = -1) -> list[str]:
        ...

    async def add_to_sorted_set(self, key: str, score: float, member: str) -> None:
        ...

    async def count_sorted_set_members(
        self,
        key: str,
        min_score: ScoreBound = "-inf",
        max_score: ScoreBound = "+inf",
    ) -> int:
        ...

    async def ping(self) -> bool:
        ...
