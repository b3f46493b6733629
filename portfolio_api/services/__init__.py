"""
Service layer infrastructure - shared machinery for upstream providers.

Provides:
- ServiceClient: async HTTP client with timeout, bounded retry and credentials
- validate: strict schema check producing Valid / Invalid
- TTLCache: per-provider in-memory cache with read-time staleness
- DegradationPolicy: cache / fetch / stale / fallback / failure resolution
- to_http_response: outcome to HTTP mapping with Cache-Control
"""

from portfolio_api.services.errors import (
    ServiceError,
    TransportError,
    RequestTimeoutError,
    ValidationError,
    ConfigurationError,
    FieldError,
)
from portfolio_api.services.cache import TTLCache, CacheEntry, CacheResult, CacheStats
from portfolio_api.services.validation import Valid, Invalid, ValidationResult, validate
from portfolio_api.services.client import (
    ServiceClient,
    Credentials,
    BearerToken,
    BasicApiKey,
    RefreshTokenCredentials,
)
from portfolio_api.services.policy import (
    ProviderConfig,
    DegradationPolicy,
    FetchOutcome,
    Fresh,
    Cached,
    Degraded,
    Failed,
)
from portfolio_api.services.transport import cache_control, to_http_response

__all__ = [
    # Errors
    "ServiceError",
    "TransportError",
    "RequestTimeoutError",
    "ValidationError",
    "ConfigurationError",
    "FieldError",
    # Cache
    "TTLCache",
    "CacheEntry",
    "CacheResult",
    "CacheStats",
    # Validation
    "Valid",
    "Invalid",
    "ValidationResult",
    "validate",
    # Client
    "ServiceClient",
    "Credentials",
    "BearerToken",
    "BasicApiKey",
    "RefreshTokenCredentials",
    # Policy
    "ProviderConfig",
    "DegradationPolicy",
    "FetchOutcome",
    "Fresh",
    "Cached",
    "Degraded",
    "Failed",
    # Transport
    "cache_control",
    "to_http_response",
]
