"""
ServiceClient - shared async HTTP client for upstream providers.

Combines:
- One pooled httpx.AsyncClient for the whole process
- An explicit per-request timeout and an overall deadline per fetch
- A bounded retry (at most 2 attempts) for transient failures
- Credential strategies (none, bearer, basic key, refresh-token exchange)

Every httpx failure leaves this module as a TransportError.
"""

import base64
from abc import ABC, abstractmethod
from typing import Any, Literal

import httpx
from loguru import logger
from pydantic import StrictInt, StrictStr

from portfolio_api.services.errors import RequestTimeoutError, TransportError
from portfolio_api.services.validation import Invalid, UpstreamModel, validate

MAX_ATTEMPTS = 2
DEFAULT_DEADLINE = 15.0


class ServiceClient:
    """
    Thin wrapper over httpx with error translation and a retry bound.

    Usage:
        client = ServiceClient(timeout=10.0)

        data = await client.request_json(
            service_id="lanyard",
            url="https://api.lanyard.rest/v1/users/123",
        )
    """

    def __init__(
        self,
        timeout: float = 10.0,
        max_attempts: int = MAX_ATTEMPTS,
        deadline: float = DEFAULT_DEADLINE,
        transport: httpx.AsyncBaseTransport | None = None,
        debug: bool = False,
    ):
        self._timeout = timeout
        self._max_attempts = max(1, min(max_attempts, MAX_ATTEMPTS))
        self._deadline = deadline
        self._transport = transport
        self._debug = debug

        # HTTP client (lazy initialization)
        self._http_client: httpx.AsyncClient | None = None

    @property
    def timeout(self) -> float:
        return self._timeout

    @property
    def deadline(self) -> float:
        """Wall-clock budget for one provider fetch, token exchange and retries included."""
        return self._deadline

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout),
                follow_redirects=True,
                transport=self._transport,
            )
        return self._http_client

    async def request_json(
        self,
        service_id: str,
        url: str,
        method: str = "GET",
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        json_data: Any = None,
        form_data: dict[str, str] | None = None,
        credentials: "Credentials | None" = None,
    ) -> Any:
        """
        Make an HTTP request and return the deserialized JSON body.

        Args:
            service_id: Provider identifier (for logs and errors)
            url: Full URL to request
            method: HTTP method
            params: Query parameters
            headers: Additional headers
            json_data: JSON body for POST requests
            form_data: Form-encoded body for POST requests
            credentials: Strategy that supplies auth headers

        Returns:
            Deserialized JSON, or None for an empty body (e.g. 204)

        Raises:
            RequestTimeoutError: If the request times out
            TransportError: For network errors, non-2xx statuses,
                credential failures and undecodable bodies
        """
        req_headers: dict[str, str] = {}
        if headers:
            req_headers.update(headers)
        if credentials is not None:
            req_headers.update(await credentials.auth_headers(self, service_id))

        last_error: TransportError | None = None
        for attempt in range(1, self._max_attempts + 1):
            try:
                return await self._execute_request(
                    url=url,
                    params=params,
                    headers=req_headers,
                    method=method,
                    json_data=json_data,
                    form_data=form_data,
                    service_id=service_id,
                )
            except TransportError as e:
                last_error = e
                if not _is_retryable(e) or attempt == self._max_attempts:
                    break
                logger.warning(
                    f"Attempt {attempt}/{self._max_attempts} to {service_id} failed, retrying: {e}"
                )

        assert last_error is not None
        raise last_error

    async def request_graphql(
        self,
        service_id: str,
        url: str,
        query: str,
        variables: dict[str, Any] | None = None,
        credentials: "Credentials | None" = None,
    ) -> Any:
        """
        POST a GraphQL query and return the deserialized body.

        A body carrying ``errors`` is a failed call even under HTTP 200.

        Raises:
            TransportError: As for request_json, or when the server reports
                GraphQL errors
        """
        raw = await self.request_json(
            service_id=service_id,
            url=url,
            method="POST",
            json_data={"query": query, "variables": variables or {}},
            credentials=credentials,
        )
        errors = raw.get("errors") if isinstance(raw, dict) else None
        if errors:
            if not isinstance(errors, list):
                errors = [errors]
            messages = "; ".join(
                str(error.get("message", error)) if isinstance(error, dict) else str(error)
                for error in errors
            )
            raise TransportError(f"GraphQL errors from {service_id}: {messages}", service_id=service_id)
        return raw

    async def _execute_request(
        self,
        url: str,
        params: dict[str, Any] | None,
        headers: dict[str, str],
        method: str,
        json_data: Any,
        form_data: dict[str, str] | None,
        service_id: str,
    ) -> Any:
        """Execute the actual HTTP request."""
        client = await self._get_http_client()

        try:
            response = await client.request(
                method=method,
                url=url,
                params=params,
                headers=headers,
                json=json_data,
                data=form_data,
            )
            response.raise_for_status()

        except httpx.TimeoutException as e:
            raise RequestTimeoutError(service_id, self._timeout) from e

        except httpx.HTTPStatusError as e:
            raise TransportError(
                f"HTTP {e.response.status_code}: {e.response.text[:200]}",
                service_id=service_id,
                status_code=e.response.status_code,
            ) from e

        except httpx.RequestError as e:
            raise TransportError(str(e) or type(e).__name__, service_id=service_id) from e

        if response.status_code == 204 or not response.content:
            return None

        try:
            return response.json()
        except ValueError as e:
            raise TransportError(
                f"Undecodable JSON body from {service_id}",
                service_id=service_id,
                status_code=response.status_code,
            ) from e

    async def close(self) -> None:
        """Close the HTTP client and cleanup resources."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None
        logger.debug("ServiceClient closed")

    async def __aenter__(self) -> "ServiceClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()


def _is_retryable(error: TransportError) -> bool:
    # Timeouts, connection errors and 5xx
    return error.status_code is None or error.status_code >= 500


class Credentials(ABC):
    """Supplies the auth headers for one provider."""

    @abstractmethod
    async def auth_headers(self, client: ServiceClient, service_id: str) -> dict[str, str]:
        ...


class BearerToken(Credentials):
    def __init__(self, token: str):
        self.token = token

    async def auth_headers(self, client: ServiceClient, service_id: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}


class BasicApiKey(Credentials):
    """API key sent as HTTP basic auth with no password (WakaTime style)."""

    def __init__(self, api_key: str):
        self.api_key = api_key

    async def auth_headers(self, client: ServiceClient, service_id: str) -> dict[str, str]:
        encoded = base64.b64encode(self.api_key.encode()).decode()
        return {"Authorization": f"Basic {encoded}"}


class AccessToken(UpstreamModel):
    access_token: StrictStr
    token_type: StrictStr
    expires_in: StrictInt
    scope: StrictStr | None = None


class RefreshTokenCredentials(Credentials):
    """
    OAuth refresh-token grant.

    Exchanges the long-lived refresh token for a short-lived access token
    before every upstream call. Any failure of the exchange is a TransportError.

    The client id and secret go in a Basic header (Spotify) or, with
    ``client_auth="body"``, in the form body (Google).
    """

    def __init__(
        self,
        token_url: str,
        client_id: str,
        client_secret: str,
        refresh_token: str,
        client_auth: Literal["basic", "body"] = "basic",
    ):
        self.token_url = token_url
        self.client_id = client_id
        self.client_secret = client_secret
        self.refresh_token = refresh_token
        self.client_auth = client_auth

    async def auth_headers(self, client: ServiceClient, service_id: str) -> dict[str, str]:
        headers: dict[str, str] = {}
        form = {"grant_type": "refresh_token", "refresh_token": self.refresh_token}
        if self.client_auth == "body":
            form.update(client_id=self.client_id, client_secret=self.client_secret)
        else:
            basic = base64.b64encode(f"{self.client_id}:{self.client_secret}".encode()).decode()
            headers["Authorization"] = f"Basic {basic}"

        raw = await client.request_json(
            service_id=service_id,
            url=self.token_url,
            method="POST",
            headers=headers,
            form_data=form,
        )

        result = validate(raw, AccessToken)
        if isinstance(result, Invalid):
            raise TransportError(
                f"Credential exchange for {service_id} returned a malformed token",
                service_id=service_id,
            )
        return {"Authorization": f"Bearer {result.value.access_token}"}
