"""In-memory TTL cache for on-demand ETF detail responses."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    data: T
    expiry: float


class DetailCache(Generic[T]):
    """TTL cache with two independent keyspaces, basic and extended detail.

    Keys are uppercase tickers. An expired entry reads as a miss but is not
    evicted; the next ``set`` overwrites it. Bounds detail requests against
    the market-data provider's per-minute call budget.

    Not synchronized: assumes a single process and event loop.
    """

    def __init__(
        self,
        ttl_seconds: float = 600.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl = ttl_seconds
        self._clock = clock
        self._basic: dict[str, CacheEntry[T]] = {}
        self._extended: dict[str, CacheEntry[T]] = {}

    def _space(self, extended: bool) -> dict[str, CacheEntry[T]]:
        return self._extended if extended else self._basic

    def get(self, ticker: str, extended: bool = False) -> T | None:
        """Return the cached value, or None on miss or expiry."""
        entry = self._space(extended).get(ticker.upper())
        if entry is None or self._clock() > entry.expiry:
            return None
        return entry.data

    def set(self, ticker: str, extended: bool, value: T) -> None:
        self._space(extended)[ticker.upper()] = CacheEntry(value, self._clock() + self.ttl)

    def clear(self, ticker: str) -> None:
        key = ticker.upper()
        self._basic.pop(key, None)
        self._extended.pop(key, None)

    def clear_all(self) -> None:
        self._basic.clear()
        self._extended.clear()

    def __len__(self) -> int:
        return len(self._basic) + len(self._extended)
