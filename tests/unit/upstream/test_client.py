"""Tests for the catalog API client."""

import httpx
import pytest

from podfeed.upstream.client import API_KEY_HEADER, ApiClient
from podfeed.upstream.models import Series
from podfeed.utils.errors import UpstreamError
from podfeed.utils.retry import RetryConfig

SERIES_URL = "https://api.test/radio/v2/series/u1"


class TestApiClientInit:
    """Tests for client construction."""

    def test_series_url_strips_trailing_slash(self):
        """Test series URLs are built from the base without double slashes."""
        client = ApiClient(api_key="k", api_base_url="https://api.test/series/")

        assert client.series_url("urn:1") == "https://api.test/series/urn:1"

    @pytest.mark.asyncio
    async def test_context_manager_closes_client(self, make_client):
        """Test leaving the context closes the connection pool."""
        client = make_client(lambda request: httpx.Response(200, json={}))

        async with client:
            pass

        assert client._client.is_closed


class TestFetchJson:
    """Tests for fetch_json."""

    @pytest.mark.asyncio
    async def test_sends_api_key_header(self, make_client):
        """Test every request carries the API key header."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"ok": True})

        async with make_client(handler) as client:
            data = await client.fetch_json(SERIES_URL)

        assert data == {"ok": True}
        assert seen[0].headers[API_KEY_HEADER] == "test-key"

    @pytest.mark.asyncio
    async def test_retries_server_errors(self, make_client):
        """Test transient 5xx responses are retried until success."""
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            if calls < 3:
                return httpx.Response(503)
            return httpx.Response(200, json={"title": "ok"})

        async with make_client(handler) as client:
            data = await client.fetch_json(SERIES_URL)

        assert data == {"title": "ok"}
        assert calls == 3

    @pytest.mark.asyncio
    async def test_exhausted_retries_raise_upstream_error(self, make_client):
        """Test persistent failures surface as UpstreamError with the status."""
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(500)

        async with make_client(handler) as client:
            with pytest.raises(UpstreamError) as exc_info:
                await client.fetch_json(SERIES_URL)

        assert exc_info.value.status_code == 500
        assert exc_info.value.url == SERIES_URL
        assert calls == 3

    @pytest.mark.asyncio
    async def test_client_errors_are_retried_too(self, make_client):
        """Test any non-2xx status counts as transient."""
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(404)

        retry_config = RetryConfig(max_attempts=2, base_delay_seconds=0)
        async with make_client(handler, retry_config=retry_config) as client:
            with pytest.raises(UpstreamError) as exc_info:
                await client.fetch_json(SERIES_URL)

        assert exc_info.value.status_code == 404
        assert calls == 2

    @pytest.mark.asyncio
    async def test_transport_errors_are_retried(self, make_client):
        """Test connection failures are retried, then wrapped."""
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            raise httpx.ConnectError("connection refused", request=request)

        async with make_client(handler) as client:
            with pytest.raises(UpstreamError) as exc_info:
                await client.fetch_json(SERIES_URL)

        assert exc_info.value.status_code is None
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)
        assert calls == 3

    @pytest.mark.asyncio
    async def test_invalid_json_raises_upstream_error(self, make_client):
        """Test a non-JSON body is reported, not retried."""
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(200, content=b"<html>oops</html>")

        async with make_client(handler) as client:
            with pytest.raises(UpstreamError, match="Invalid JSON"):
                await client.fetch_json(SERIES_URL)

        assert calls == 1


class TestFetchSeries:
    """Tests for fetch_series."""

    @pytest.mark.asyncio
    async def test_parses_series(self, make_client, make_series, json_routes):
        """Test the series payload is decoded into a Series."""
        handler = json_routes({SERIES_URL: make_series(numberOfSeries=2)})

        async with make_client(handler) as client:
            series = await client.fetch_series("u1")

        assert isinstance(series, Series)
        assert series.title == "Test Show"
        assert series.presentation_type == "Show"
        assert series.latest_episode_start_time == "2024-10-02T13:00:00Z"
        assert series.number_of_series == 2
        assert series.image_assets[0].id == "img-1"

    @pytest.mark.asyncio
    async def test_unexpected_payload_raises(self, make_client, json_routes):
        """Test a payload that isn't a series object is rejected."""
        handler = json_routes({SERIES_URL: ["not", "a", "series"]})

        async with make_client(handler) as client:
            with pytest.raises(UpstreamError, match="Unexpected series payload"):
                await client.fetch_series("u1")
