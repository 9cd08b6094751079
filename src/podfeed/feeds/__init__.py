"""Feed building and persistence for podfeed."""

from podfeed.feeds.builder import FeedBuilder, render_feed, sort_episodes
from podfeed.feeds.models import (
    FeedMetadata,
    Podcast,
    PodcastList,
    ProcessOutcome,
    ProcessResult,
)
from podfeed.feeds.persist import AtomicPersister
from podfeed.feeds.staleness import should_regenerate

__all__ = [
    "AtomicPersister",
    "FeedBuilder",
    "FeedMetadata",
    "Podcast",
    "PodcastList",
    "ProcessOutcome",
    "ProcessResult",
    "render_feed",
    "should_regenerate",
    "sort_episodes",
]
