"""FastAPI server exposing the upstream aggregation endpoints."""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from loguru import logger

from portfolio_api.datasource import BaseDataSource, build_sources
from portfolio_api.services.cache import TTLCache
from portfolio_api.services.client import ServiceClient
from portfolio_api.services.policy import DegradationPolicy
from portfolio_api.services.transport import to_http_response
from portfolio_api.settings import Settings, load_settings

API_PREFIX = "/api/v1"

# provider_id -> path under API_PREFIX
ROUTES = {
    "lanyard": "/lanyard",
    "now-playing": "/now-playing",
    "top-tracks": "/top-tracks",
    "top-artists": "/top-artists",
    "google": "/google",
    "github-stats": "/github-stats",
    "github-sponsors": "/github-sponsors",
    "leetcode": "/leetcode",
    "blog": "/blog",
    "wakatime": "/wakatime",
    "experiences": "/sanity/experiences",
    "projects": "/sanity/projects",
    "certifications": "/sanity/certifications",
}


class PortfolioServer:
    """HTTP server wiring each data source to its endpoint."""

    def __init__(
        self,
        sources: dict[str, BaseDataSource],
        cache: TTLCache,
        client: ServiceClient,
    ):
        self.sources = sources
        self.cache = cache
        self.client = client
        self.policy = DegradationPolicy(cache)

        for source in sources.values():
            cache.register(source.provider_id, source.config.ttl_ms)

        self.app = FastAPI(title="Portfolio API", lifespan=self._lifespan)
        self.app.state.server = self

        # Register routes
        for provider_id, path in ROUTES.items():
            if provider_id in sources:
                self.app.get(f"{API_PREFIX}{path}", name=provider_id)(
                    self._make_handler(provider_id)
                )
        self.app.get(f"{API_PREFIX}/health")(self.health_check)
        self.app.exception_handler(Exception)(self.handle_unexpected)

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI) -> AsyncIterator[None]:
        logger.info(f"Serving {len(self.sources)} providers")
        yield
        await self.client.close()
        logger.info("Portfolio API stopped")

    def _make_handler(self, provider_id: str):
        source = self.sources[provider_id]

        async def handler() -> JSONResponse:
            outcome = await self.policy.resolve_source(source)
            return to_http_response(outcome, source.config)

        handler.__name__ = f"get_{provider_id.replace('-', '_')}"
        return handler

    async def health_check(self) -> JSONResponse:
        """Health check endpoint."""
        providers = {}
        for provider_id, source in self.sources.items():
            entry = await self.cache.get(provider_id)
            providers[provider_id] = {
                "configured": source.is_configured(),
                "cached": entry is not None,
                "fetchedAt": entry.fetched_at if entry else None,
            }

        return JSONResponse(
            content={
                "status": "ok",
                "providers": providers,
                "cache": self.cache.get_stats().to_dict(),
            },
            headers={"Cache-Control": "no-store"},
        )

    async def handle_unexpected(self, request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled error on {request.url.path}: {exc}")
        return JSONResponse(
            content={"error": "Internal server error"},
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )


def create_app(
    settings: Settings | None = None,
    client: ServiceClient | None = None,
    cache: TTLCache | None = None,
) -> FastAPI:
    """Create FastAPI app.

    Args:
        settings: Configuration (read from the environment when omitted)
        client: Shared HTTP client (built from settings when omitted)
        cache: Cache instance (a fresh one when omitted)

    Returns:
        FastAPI app

    Raises:
        ConfigurationError: If REQUIRE_ALL_PROVIDERS is set and secrets are missing
    """
    settings = settings or load_settings()
    client = client or ServiceClient(
        timeout=settings.upstream_timeout,
        max_attempts=settings.upstream_max_attempts,
        deadline=settings.upstream_deadline,
    )
    cache = cache or TTLCache(debug=settings.cache_debug)

    sources = build_sources(settings, client)
    server = PortfolioServer(sources, cache, client)
    return server.app
