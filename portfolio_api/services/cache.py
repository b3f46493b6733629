"""
TTLCache - per-provider in-memory cache with read-time staleness.

Features:
- One slot per provider, each guarded by its own asyncio.Lock
- Entries are immutable and replaced whole on refresh
- Freshness evaluated on read (no janitor task, no eviction)
- Expired entries are kept so the degradation policy can serve them on error
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

from loguru import logger

T = TypeVar("T")

Clock = Callable[[], int]


def epoch_ms() -> int:
    """Wall clock in milliseconds since the epoch."""
    return int(time.time() * 1000)


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """A validated value and the instant it was fetched."""

    value: T
    fetched_at: int

    def age_ms(self, now: int) -> int:
        return now - self.fetched_at

    def is_fresh(self, ttl_ms: int, now: int) -> bool:
        return now - self.fetched_at < ttl_ms


@dataclass
class CacheResult(Generic[T]):
    """Result from cache lookup."""

    entry: CacheEntry[T]
    is_stale: bool

    @property
    def value(self) -> T:
        return self.entry.value


class _Slot:
    """Storage for one provider. Only the reference to the entry is mutated."""

    def __init__(self, ttl_ms: int):
        self.ttl_ms = ttl_ms
        self.entry: CacheEntry[Any] | None = None
        self.lock = asyncio.Lock()


class TTLCache:
    """
    Keyed in-memory cache with a provider-specific TTL.

    Usage:
        cache = TTLCache()
        cache.register("lanyard", ttl_ms=60_000)

        result = await cache.lookup("lanyard")
        if result and not result.is_stale:
            return result.value

        await cache.put("lanyard", payload)
    """

    def __init__(self, clock: Clock | None = None, debug: bool = False):
        self._slots: dict[str, _Slot] = {}
        self._clock = clock or epoch_ms
        self._debug = debug
        self._stats = CacheStats()

    def register(self, provider_id: str, ttl_ms: int) -> None:
        """Create the slot for a provider. Called once at startup."""
        if ttl_ms <= 0:
            raise ValueError(f"ttl_ms must be positive, got {ttl_ms}")
        if provider_id in self._slots:
            raise ValueError(f"Provider already registered: {provider_id}")
        self._slots[provider_id] = _Slot(ttl_ms)
        self._log(f"REGISTER: {provider_id} (TTL: {ttl_ms}ms)")

    def now(self) -> int:
        return self._clock()

    def ttl_ms(self, provider_id: str) -> int:
        return self._slot(provider_id).ttl_ms

    async def get(self, provider_id: str) -> CacheEntry[Any] | None:
        """Return the current entry for a provider, fresh or not."""
        slot = self._slot(provider_id)
        async with slot.lock:
            return slot.entry

    async def lookup(self, provider_id: str) -> CacheResult[Any] | None:
        """
        Get the entry for a provider together with its freshness.

        Returns None when nothing has been cached yet.
        """
        slot = self._slot(provider_id)
        async with slot.lock:
            entry = slot.entry

        if entry is None:
            self._stats.misses += 1
            self._log(f"MISS: {provider_id}")
            return None

        is_stale = not entry.is_fresh(slot.ttl_ms, self.now())
        if is_stale:
            self._stats.stale_hits += 1
            self._log(f"STALE: {provider_id}")
        else:
            self._stats.hits += 1
            self._log(f"HIT: {provider_id}")

        return CacheResult(entry=entry, is_stale=is_stale)

    async def put(self, provider_id: str, value: Any) -> CacheEntry[Any]:
        """Replace the entry for a provider with a freshly fetched value."""
        slot = self._slot(provider_id)
        entry = CacheEntry(value=value, fetched_at=self.now())
        async with slot.lock:
            slot.entry = entry
        self._stats.writes += 1
        self._log(f"SET: {provider_id} at {entry.fetched_at}")
        return entry

    async def clear(self) -> None:
        """Drop every entry. Slots and TTLs stay registered."""
        for slot in self._slots.values():
            async with slot.lock:
                slot.entry = None
        self._log("CLEAR")

    def providers(self) -> list[str]:
        return list(self._slots)

    def get_stats(self) -> "CacheStats":
        """Get cache statistics."""
        self._stats.size = sum(1 for s in self._slots.values() if s.entry is not None)
        return self._stats

    def _slot(self, provider_id: str) -> _Slot:
        try:
            return self._slots[provider_id]
        except KeyError:
            raise KeyError(f"Unknown provider: {provider_id}") from None

    def _log(self, message: str) -> None:
        """Log debug message if debug mode is enabled."""
        if self._debug:
            logger.debug(f"[TTLCache] {message}")


@dataclass
class CacheStats:
    """Cache statistics."""

    hits: int = 0
    misses: int = 0
    stale_hits: int = 0
    writes: int = 0
    size: int = 0

    @property
    def hit_rate(self) -> float:
        """Share of lookups answered with fresh data."""
        total = self.hits + self.stale_hits + self.misses
        if total == 0:
            return 0.0
        return self.hits / total

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "hits": self.hits,
            "misses": self.misses,
            "staleHits": self.stale_hits,
            "writes": self.writes,
            "size": self.size,
            "hitRate": f"{self.hit_rate:.2%}",
        }
