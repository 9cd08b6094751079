"""Catalog API access for podfeed."""

from podfeed.upstream.client import ApiClient
from podfeed.upstream.models import AudioAsset, Episode, EpisodePage, ImageAsset, Series
from podfeed.upstream.paginator import EpisodePaginator

__all__ = [
    "ApiClient",
    "EpisodePaginator",
    "AudioAsset",
    "Episode",
    "EpisodePage",
    "ImageAsset",
    "Series",
]
