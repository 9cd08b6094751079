"""HTTP client for the podcast catalog API."""

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from podfeed.upstream.models import Series
from podfeed.utils.errors import UpstreamError
from podfeed.utils.retry import RetryableError, RetryConfig, TransientHTTPError, retry_async

logger = logging.getLogger(__name__)

DEFAULT_API_BASE_URL = "https://api.dr.dk/radio/v2/series"
API_KEY_HEADER = "x-apikey"


class ApiClient:
    """Issues GET requests against the catalog API with retries.

    Every request carries the static API key header and a per-call timeout.
    Non-2xx responses and transport failures are retried; once attempts are
    exhausted the failure surfaces as ``UpstreamError``.

    Example:
        >>> async with ApiClient(api_key="secret") as client:
        ...     series = await client.fetch_series("urn:dr:radio:series:123")
    """

    def __init__(
        self,
        api_key: str,
        api_base_url: str = DEFAULT_API_BASE_URL,
        timeout_seconds: float = 30.0,
        retry_config: RetryConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the API client.

        Args:
            api_key: Value for the ``x-apikey`` header
            api_base_url: Base URL of the series endpoints
            timeout_seconds: Timeout applied to each HTTP call
            retry_config: Retry policy (module default if None)
            transport: Optional httpx transport, used by tests
        """
        self.api_base_url = api_base_url.rstrip("/")
        self.retry_config = retry_config
        self._client = httpx.AsyncClient(
            headers={API_KEY_HEADER: api_key},
            timeout=timeout_seconds,
            transport=transport,
            follow_redirects=True,
        )

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP connection pool."""
        await self._client.aclose()

    def series_url(self, urn: str) -> str:
        return f"{self.api_base_url}/{urn}"

    async def fetch_json(self, url: str) -> Any:
        """GET ``url`` and decode the JSON body.

        Args:
            url: Absolute URL to fetch

        Returns:
            Decoded JSON document

        Raises:
            UpstreamError: If every attempt failed or the body is not JSON
        """

        async def attempt() -> httpx.Response:
            response = await self._client.get(url)
            if not response.is_success:
                raise TransientHTTPError(
                    f"HTTP {response.status_code} from {url}",
                    status_code=response.status_code,
                    url=url,
                )
            return response

        try:
            response = await retry_async(
                attempt,
                config=self.retry_config,
                retry_on=(RetryableError, httpx.TransportError),
                description=url,
            )
        except TransientHTTPError as e:
            raise UpstreamError(
                f"Upstream returned HTTP {e.status_code} for {url}",
                url=url,
                status_code=e.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"Request to {url} failed: {e}", url=url) from e

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(
                f"Invalid JSON from {url}: {e}",
                url=url,
                status_code=response.status_code,
            ) from e

    async def fetch_series(self, urn: str) -> Series:
        """Fetch show-level metadata for a series.

        Raises:
            UpstreamError: If the request fails or the payload is not a series
        """
        url = self.series_url(urn)
        data = await self.fetch_json(url)
        try:
            return Series.model_validate(data)
        except ValidationError as e:
            raise UpstreamError(f"Unexpected series payload from {url}: {e}", url=url) from e
