"""Episode listing pagination."""

import logging

from pydantic import ValidationError

from podfeed.upstream.client import ApiClient
from podfeed.upstream.models import Episode, EpisodePage
from podfeed.utils.errors import UpstreamError

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 256


class EpisodePaginator:
    """Assembles a series' full episode list by following ``next`` links."""

    def __init__(self, client: ApiClient, page_size: int = DEFAULT_PAGE_SIZE) -> None:
        if page_size < 1:
            raise ValueError("page_size must be positive")
        self.client = client
        self.page_size = page_size

    def first_page_url(self, urn: str) -> str:
        return f"{self.client.series_url(urn)}/episodes?limit={self.page_size}"

    async def fetch_all_episodes(self, urn: str) -> list[Episode]:
        """Fetch every episode of a series, in upstream response order.

        Any failing page aborts the whole listing; callers never see a
        partial episode list.

        Args:
            urn: Series URN

        Returns:
            Concatenated ``items`` of every page

        Raises:
            UpstreamError: If a page fails, is malformed, or pagination loops
        """
        episodes: list[Episode] = []
        visited: set[str] = set()
        next_url: str | None = self.first_page_url(urn)
        pages = 0

        while next_url:
            if next_url in visited:
                raise UpstreamError(
                    f"Pagination for {urn} revisited {next_url}", url=next_url
                )
            visited.add(next_url)

            data = await self.client.fetch_json(next_url)
            try:
                page = EpisodePage.model_validate(data)
            except ValidationError as e:
                raise UpstreamError(
                    f"Unexpected episode page from {next_url}: {e}", url=next_url
                ) from e

            episodes.extend(page.items)
            pages += 1
            next_url = page.next or None

        logger.debug(f"Fetched {len(episodes)} episodes for {urn} in {pages} page(s)")
        return episodes
