"""Feed generation pipeline: per-podcast processing, cycles and scheduling."""

from podfeed.pipeline.processor import PodcastProcessor
from podfeed.pipeline.scheduler import FeedHealthStatus, RefreshScheduler
from podfeed.pipeline.service import FeedGenerationService

__all__ = [
    "FeedGenerationService",
    "FeedHealthStatus",
    "PodcastProcessor",
    "RefreshScheduler",
]
