"""Per-podcast feed generation.

One run walks Fetching -> (Skipped | Building -> Persisting -> Done), and
any failure along the way ends in Failed. Failures are logged and turned
into a result; they never escape to sibling podcasts.
"""

import logging

from podfeed.config.schema import GeneratorConfig
from podfeed.feeds.builder import FeedBuilder, render_feed
from podfeed.feeds.models import Podcast, ProcessOutcome, ProcessResult
from podfeed.feeds.persist import AtomicPersister
from podfeed.feeds.staleness import should_regenerate
from podfeed.upstream.client import ApiClient
from podfeed.upstream.paginator import EpisodePaginator
from podfeed.utils.errors import PodfeedError

logger = logging.getLogger(__name__)


class PodcastProcessor:
    """Fetches, builds and persists the feed for a single podcast.

    Example:
        >>> processor = PodcastProcessor(config, client)
        >>> result = await processor.process(podcast)
        >>> result.outcome
        <ProcessOutcome.DONE: 'done'>
    """

    def __init__(
        self,
        config: GeneratorConfig,
        client: ApiClient,
        paginator: EpisodePaginator | None = None,
        builder: FeedBuilder | None = None,
        persister: AtomicPersister | None = None,
    ) -> None:
        """Initialize the processor.

        Args:
            config: Generator configuration
            client: Catalog API client
            paginator: Episode paginator (built from client if None)
            builder: Feed builder (built from config if None)
            persister: Feed writer (AtomicPersister if None)
        """
        self.config = config
        self.client = client
        self.paginator = paginator or EpisodePaginator(client, page_size=config.page_size)
        self.builder = builder or FeedBuilder(config)
        self.persister = persister or AtomicPersister()

    async def process(self, podcast: Podcast) -> ProcessResult:
        """Bring one podcast's feed up to date.

        Returns:
            ProcessResult; ``metadata`` is set for done and skipped outcomes
        """
        slug = podcast.slug
        feed_path = self.config.feed_path(slug)

        # Fetching
        try:
            series = await self.client.fetch_series(podcast.urn)
        except Exception as e:
            return self._failed(podcast, "fetch series", e)

        if not await should_regenerate(feed_path, series.latest_episode_start_time):
            logger.info(f"Skipped {slug} (unchanged)")
            return ProcessResult(
                slug=slug,
                outcome=ProcessOutcome.SKIPPED,
                metadata=self.builder.metadata(series, podcast),
            )

        # Building
        try:
            episodes = await self.paginator.fetch_all_episodes(podcast.urn)
            rss, metadata = self.builder.build(series, episodes, podcast)
            document = render_feed(rss)
        except Exception as e:
            return self._failed(podcast, "build feed", e)

        # Persisting
        try:
            await self.persister.write(feed_path, document)
        except Exception as e:
            return self._failed(podcast, "write feed", e)

        logger.info(f"Generated {slug} ({len(episodes)} episodes)")
        return ProcessResult(slug=slug, outcome=ProcessOutcome.DONE, metadata=metadata)

    def _failed(self, podcast: Podcast, stage: str, error: Exception) -> ProcessResult:
        message = f"Failed to {stage} for {podcast.slug} ({podcast.urn}): {error}"
        if isinstance(error, PodfeedError):
            logger.error(message)
        else:
            logger.exception(message)
        return ProcessResult(
            slug=podcast.slug,
            outcome=ProcessOutcome.FAILED,
            error=str(error),
        )
