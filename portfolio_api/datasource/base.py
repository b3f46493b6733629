"""
Base data source interface.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from portfolio_api.services.client import ServiceClient
from portfolio_api.services.errors import RequestTimeoutError, ValidationError
from portfolio_api.services.policy import ProviderConfig
from portfolio_api.services.validation import Invalid, validate

T = TypeVar("T")

MINUTE_MS = 60 * 1000
HOUR_MS = 60 * MINUTE_MS
DAY_MS = 24 * HOUR_MS


class ResponseModel(BaseModel):
    """Public payload served by an endpoint. Fields serialize as camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BaseDataSource(ABC, Generic[T]):
    """
    Abstract base class for all data sources.

    All data sources should:
    - Use ServiceClient for HTTP requests
    - Declare the upstream schema the raw payload must satisfy
    - Turn the validated payload into ResponseModel(s)
    - Leave caching and degradation to the DegradationPolicy
    """

    SERVICE_ID: str
    UPSTREAM_SCHEMA: Any
    CONFIG: ProviderConfig[Any]
    EXCLUDE_NONE = False

    def __init__(self, client: ServiceClient):
        self.client = client

    @property
    def provider_id(self) -> str:
        return self.SERVICE_ID

    @property
    def config(self) -> ProviderConfig[Any]:
        return self.CONFIG

    @abstractmethod
    async def fetch_raw(self) -> Any:
        """Call the upstream and return the deserialized body."""
        ...

    @abstractmethod
    def transform(self, payload: Any) -> T:
        """Map the validated upstream payload to the public shape."""
        ...

    def missing_settings(self) -> list[str]:
        """Names of required settings that are empty."""
        return []

    def is_configured(self) -> bool:
        return not self.missing_settings()

    async def load(self) -> Any:
        """Fetch, validate and transform. Returns JSON-ready data."""
        deadline = self.client.deadline
        try:
            raw = await asyncio.wait_for(self.fetch_raw(), timeout=deadline)
        except asyncio.TimeoutError as e:
            raise RequestTimeoutError(self.SERVICE_ID, deadline) from e

        result = validate(raw, self.UPSTREAM_SCHEMA)
        if isinstance(result, Invalid):
            raise ValidationError(result.errors, service_id=self.SERVICE_ID)

        return self.dump(self.transform(result.value))

    def dump(self, value: Any) -> Any:
        if isinstance(value, BaseModel):
            return value.model_dump(mode="json", by_alias=True, exclude_none=self.EXCLUDE_NONE)
        if isinstance(value, list):
            return [self.dump(item) for item in value]
        return value
