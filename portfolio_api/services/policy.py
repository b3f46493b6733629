"""
Degradation policy - decides what a request gets back.

Order of preference:
1. Fresh cache entry
2. Freshly fetched and validated value (written to the cache)
3. Stale cache entry, whatever its age
4. Configured fallback
5. Failure

Transport and validation errors stop here. Anything else is a bug and
propagates.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, TypeVar, Union

from loguru import logger

from portfolio_api.services.cache import TTLCache
from portfolio_api.services.errors import (
    ConfigurationError,
    ServiceError,
    TransportError,
    ValidationError,
)

T = TypeVar("T")


@dataclass(frozen=True)
class ProviderConfig(Generic[T]):
    """Static per-provider behaviour, fixed at startup."""

    ttl_ms: int
    fallback: T | None = None
    mask_failure_as_success: bool = False
    # Defaults to half the TTL
    stale_while_revalidate_s: int | None = None

    @property
    def has_fallback(self) -> bool:
        return self.fallback is not None


@dataclass(frozen=True)
class Fresh(Generic[T]):
    value: T


@dataclass(frozen=True)
class Cached(Generic[T]):
    value: T
    is_stale: bool = False


@dataclass(frozen=True)
class Degraded(Generic[T]):
    value: T
    error: ServiceError


@dataclass(frozen=True)
class Failed:
    provider_id: str
    error: ServiceError

    @property
    def message(self) -> str:
        return f"Failed to fetch {self.provider_id} data"


FetchOutcome = Union[Fresh[T], Cached[T], Degraded[T], Failed]


class DegradationPolicy:
    """
    Resolves one request for one provider against the shared TTLCache.

    Usage:
        policy = DegradationPolicy(cache)
        outcome = await policy.resolve("google", config, fetch_analytics)
    """

    def __init__(self, cache: TTLCache):
        self._cache = cache
        self._in_flight: set[asyncio.Task[Any]] = set()

    @property
    def cache(self) -> TTLCache:
        return self._cache

    async def resolve(
        self,
        provider_id: str,
        config: ProviderConfig[T],
        fetch: Callable[[], Awaitable[T]],
    ) -> FetchOutcome:
        """
        Produce the outcome for a single request.

        Args:
            provider_id: Cache slot to use
            config: TTL, fallback and masking for this provider
            fetch: Fetches and validates a fresh value; raises
                TransportError or ValidationError on failure
        """
        cached = await self._cache.lookup(provider_id)
        if cached and not cached.is_stale:
            return Cached(cached.value)

        try:
            value = await self._refresh(provider_id, fetch)
        except (TransportError, ValidationError) as e:
            return await self._degrade(provider_id, config, e)

        logger.info(f"Fetched fresh data for {provider_id}")
        return Fresh(value)

    async def resolve_source(self, source: Any) -> FetchOutcome:
        """Resolve a data source, short-circuiting when it lacks credentials."""
        missing = source.missing_settings()
        if missing:
            return Failed(source.provider_id, ConfigurationError(missing, source.provider_id))
        return await self.resolve(source.provider_id, source.config, source.load)

    async def _refresh(self, provider_id: str, fetch: Callable[[], Awaitable[T]]) -> T:
        # The fetch runs in its own task so a cancelled caller does not abort
        # it; the result still lands in the cache for the next request.
        task = asyncio.create_task(self._fetch_and_store(provider_id, fetch))
        self._in_flight.add(task)
        task.add_done_callback(self._on_fetch_done)
        return await asyncio.shield(task)

    async def _fetch_and_store(
        self, provider_id: str, fetch: Callable[[], Awaitable[T]]
    ) -> T:
        value = await fetch()
        await self._cache.put(provider_id, value)
        return value

    def _on_fetch_done(self, task: asyncio.Task[Any]) -> None:
        self._in_flight.discard(task)
        if task.cancelled():
            return
        # Marks the exception as retrieved when the caller has gone away
        error = task.exception()
        if error is not None and not isinstance(error, (TransportError, ValidationError)):
            logger.error(f"Unexpected error in upstream fetch: {error!r}")

    async def _degrade(
        self, provider_id: str, config: ProviderConfig[Any], error: ServiceError
    ) -> FetchOutcome:
        # Re-read: another request may have refreshed the slot meanwhile
        entry = await self._cache.get(provider_id)
        if entry is not None:
            logger.warning(f"Request to {provider_id} failed, returning stale data: {error}")
            return Cached(entry.value, is_stale=True)

        if config.has_fallback:
            logger.warning(f"Request to {provider_id} failed, returning fallback: {error}")
            return Degraded(config.fallback, error)

        logger.error(f"Request to {provider_id} failed with nothing to fall back on: {error}")
        return Failed(provider_id, error)

    def in_flight_count(self) -> int:
        return len(self._in_flight)
