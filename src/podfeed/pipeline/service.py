"""Feed generation across all configured podcasts."""

import asyncio
import logging
from collections import Counter
from collections.abc import Awaitable, Callable, Sequence

from podfeed.config.manager import ConfigManager
from podfeed.config.schema import GeneratorConfig
from podfeed.feeds.models import FeedMetadata, Podcast, ProcessOutcome, ProcessResult
from podfeed.pipeline.processor import PodcastProcessor
from podfeed.upstream.client import ApiClient

logger = logging.getLogger(__name__)

MetadataSink = Callable[[list[FeedMetadata]], Awaitable[None]]


class FeedGenerationService:
    """Runs the podcast processor over every configured podcast.

    Podcasts are processed concurrently, optionally capped by
    ``config.max_concurrency``. Per-podcast failures are already logged by
    the processor and only show up here as missing metadata.

    Example:
        >>> async with ApiClient(api_key=config.api_key) as client:
        ...     service = FeedGenerationService(config, client)
        ...     metadata = await service.run_cycle()
    """

    def __init__(
        self,
        config: GeneratorConfig,
        client: ApiClient | None = None,
        config_manager: ConfigManager | None = None,
        processor: PodcastProcessor | None = None,
        metadata_sink: MetadataSink | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            config: Generator configuration
            client: Catalog API client shared by all podcasts; required
                unless a processor is given
            config_manager: Source of the podcast list (default ConfigManager)
            processor: Per-podcast processor (built from config if None)
            metadata_sink: Receives the metadata of each completed cycle
        """
        self.config = config
        self.config_manager = config_manager or ConfigManager()
        if processor is None:
            if client is None:
                raise ValueError("Either client or processor is required")
            processor = PodcastProcessor(config, client)
        self.processor = processor
        self.metadata_sink = metadata_sink
        self.last_results: list[ProcessResult] = []

    async def process_all(self, podcasts: Sequence[Podcast]) -> list[ProcessResult]:
        """Process podcasts concurrently and return results in input order.

        A slug listed more than once is processed only for its first entry.
        """
        unique: dict[str, Podcast] = {}
        for podcast in podcasts:
            if podcast.slug in unique:
                logger.warning(f"Ignoring duplicate podcast slug {podcast.slug} ({podcast.urn})")
                continue
            unique[podcast.slug] = podcast

        limit = self.config.max_concurrency
        semaphore = asyncio.Semaphore(limit) if limit else None

        async def process_with_limit(podcast: Podcast) -> ProcessResult:
            if semaphore is None:
                return await self.processor.process(podcast)
            async with semaphore:
                return await self.processor.process(podcast)

        results = await asyncio.gather(
            *(process_with_limit(podcast) for podcast in unique.values())
        )
        return list(results)

    async def generate_all(self, podcasts: Sequence[Podcast]) -> list[FeedMetadata]:
        """Generate feeds for all podcasts.

        Returns:
            Metadata for every podcast that was generated or skipped as unchanged
        """
        results = await self.process_all(podcasts)
        self.last_results = results

        counts = Counter(result.outcome for result in results)
        logger.info(
            f"Feed generation finished: {counts[ProcessOutcome.DONE]} generated, "
            f"{counts[ProcessOutcome.SKIPPED]} unchanged, "
            f"{counts[ProcessOutcome.FAILED]} failed"
        )

        return [result.metadata for result in results if result.metadata is not None]

    async def run_cycle(self) -> list[FeedMetadata]:
        """Load the podcast list, generate every feed and publish metadata.

        Raises:
            ConfigError: If the podcast list can't be loaded
        """
        podcasts = self.config_manager.load_podcasts(self.config)
        metadata = await self.generate_all(podcasts)

        if self.metadata_sink is not None:
            await self.metadata_sink(metadata)

        return metadata
