"""
Response transport - maps a FetchOutcome onto an HTTP response.
"""

from typing import Any

from fastapi import status
from fastapi.responses import JSONResponse

from portfolio_api.services.policy import Cached, Failed, FetchOutcome, Fresh, ProviderConfig


def cache_control(ttl_ms: int, stale_while_revalidate_s: int | None = None) -> str:
    """Cache-Control value mirroring the internal TTL."""
    if stale_while_revalidate_s is None:
        stale_while_revalidate_s = ttl_ms // 2000
    return f"public, s-maxage={ttl_ms // 1000}, stale-while-revalidate={stale_while_revalidate_s}"


def _cache_status(outcome: FetchOutcome) -> str:
    if isinstance(outcome, Fresh):
        return "MISS"
    if isinstance(outcome, Cached):
        return "STALE" if outcome.is_stale else "HIT"
    return "DEGRADED"


def to_http_response(outcome: FetchOutcome, config: ProviderConfig[Any]) -> JSONResponse:
    """
    Render an outcome.

    Values (fresh, cached or fallback) are 200 with cache headers. Failures
    are 200 with an error body when the provider masks them, otherwise 500
    without cache headers so intermediaries never store them.
    """
    if isinstance(outcome, Failed):
        body = {"error": outcome.message}
        if config.mask_failure_as_success:
            return JSONResponse(
                content=body,
                status_code=status.HTTP_200_OK,
                headers={"Cache-Control": "no-store", "X-Cache-Status": "ERROR"},
            )
        return JSONResponse(
            content=body,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    return JSONResponse(
        content=outcome.value,
        status_code=status.HTTP_200_OK,
        headers={
            "Cache-Control": cache_control(config.ttl_ms, config.stale_while_revalidate_s),
            "X-Cache-Status": _cache_status(outcome),
        },
    )
