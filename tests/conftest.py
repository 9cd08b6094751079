"""Shared fixtures for podfeed tests."""

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx
import pytest

from podfeed.config.schema import GeneratorConfig
from podfeed.feeds.models import Podcast
from podfeed.upstream.client import ApiClient
from podfeed.utils.retry import TEST_RETRY_CONFIG

API_BASE = "https://api.test/radio/v2/series"


@pytest.fixture(autouse=True)
def fast_retry_config(monkeypatch):
    """Use fast retry configuration for all tests to avoid long delays."""
    monkeypatch.setattr("podfeed.utils.retry.DEFAULT_RETRY_CONFIG", TEST_RETRY_CONFIG)


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo setup_logging() between tests so caplog sees package records."""
    yield
    logger = logging.getLogger("podfeed")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def config(tmp_path: Path) -> GeneratorConfig:
    """Generator config writing into a temporary directory."""
    return GeneratorConfig(
        api_key="test-key",
        api_base_url=API_BASE,
        base_url="https://feeds.example.com",
        output_dir=tmp_path / "site",
        feed_timezone="UTC",
        retry_base_delay_seconds=0.001,
        retry_max_delay_seconds=0.01,
    )


@pytest.fixture
def podcast() -> Podcast:
    return Podcast(slug="p1", urn="u1")


def _series_payload(**overrides: Any) -> dict[str, Any]:
    """Series JSON as the catalog API returns it."""
    payload: dict[str, Any] = {
        "id": "u1",
        "slug": "p1",
        "title": "Test Show",
        "punchline": "A show for tests",
        "description": "All about tests",
        "categories": ["Dokumentar"],
        "presentationType": "Show",
        "groupingType": None,
        "defaultOrder": "Desc",
        "latestEpisodeStartTime": "2024-10-02T13:00:00Z",
        "presentationUrl": "https://www.dr.dk/lyd/p1",
        "explicitContent": False,
        "imageAssets": [{"id": "img-1", "target": "Podcast", "ratio": "1:1"}],
        "numberOfEpisodes": 2,
        "numberOfSeries": 0,
    }
    payload.update(overrides)
    return payload


def _episode_payload(episode_id: str, **overrides: Any) -> dict[str, Any]:
    """Episode JSON as the catalog API returns it."""
    payload: dict[str, Any] = {
        "id": episode_id,
        "title": f"Episode {episode_id}",
        "description": f"About {episode_id}",
        "publishTime": "2024-10-01T08:00:00Z",
        "presentationUrl": f"https://www.dr.dk/lyd/p1/{episode_id}",
        "durationMilliseconds": 1_800_000,
        "audioAssets": [],
        "imageAssets": [],
        "categories": [],
        "explicitContent": False,
    }
    payload.update(overrides)
    return payload


def _mock_client(
    handler: Callable[[httpx.Request], httpx.Response],
    **kwargs: Any,
) -> ApiClient:
    """ApiClient whose requests are answered by ``handler``."""
    kwargs.setdefault("api_base_url", API_BASE)
    return ApiClient(
        api_key="test-key",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


def _routes(responses: dict[str, Any]) -> Callable[[httpx.Request], httpx.Response]:
    """Handler serving JSON bodies keyed by full URL; anything else is 404."""

    def handler(request: httpx.Request) -> httpx.Response:
        body = responses.get(str(request.url))
        if body is None:
            return httpx.Response(404, json={"error": "not found"})
        return httpx.Response(200, json=body)

    return handler


@pytest.fixture
def make_series() -> Callable[..., dict[str, Any]]:
    return _series_payload


@pytest.fixture
def make_episode() -> Callable[..., dict[str, Any]]:
    return _episode_payload


@pytest.fixture
def make_client() -> Callable[..., ApiClient]:
    return _mock_client


@pytest.fixture
def json_routes() -> Callable[[dict[str, Any]], Callable[[httpx.Request], httpx.Response]]:
    return _routes
