"""RSS/iTunes feed construction from upstream series and episodes.

Building is pure: the same series, episodes and configuration always
produce the same document, which keeps unchanged feeds byte-identical.
"""

import logging
import re
from collections.abc import Sequence
from typing import TYPE_CHECKING

from lxml import etree

from podfeed.feeds.assets import (
    MP4_FORMATS,
    is_trusted_audio_url,
    proxy_audio_url,
    resolve_image_url,
    select_audio_asset,
)
from podfeed.feeds.formatting import (
    clean_title,
    format_duration,
    format_rfc822,
    format_timestamp,
    map_categories,
    mime_type_for,
    parse_timestamp,
)
from podfeed.feeds.models import FeedMetadata, Podcast
from podfeed.upstream.models import Episode, Series
from podfeed.utils.errors import FeedBuildError

if TYPE_CHECKING:
    from podfeed.config.schema import GeneratorConfig

logger = logging.getLogger(__name__)

ATOM_NS = "http://www.w3.org/2005/Atom"
ITUNES_NS = "http://www.itunes.com/dtds/podcast-1.0.dtd"
MEDIA_NS = "http://search.yahoo.com/mrss/"

# Characters XML 1.0 cannot carry; upstream text occasionally contains them
INVALID_XML_CHARS = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\ufffe\uffff]")


def _atom(tag: str) -> str:
    return f"{{{ATOM_NS}}}{tag}"


def _itunes(tag: str) -> str:
    return f"{{{ITUNES_NS}}}{tag}"


def _media(tag: str) -> str:
    return f"{{{MEDIA_NS}}}{tag}"


def _text(value: object) -> str:
    if value is None:
        return ""
    return INVALID_XML_CHARS.sub("", str(value))


def _yes_no(flag: bool | None) -> str:
    return "yes" if flag else "no"


def itunes_type(series: Series) -> str:
    """iTunes show type: "serial" for presentation type "Show"."""
    return "serial" if series.presentation_type == "Show" else "episodic"


def sort_episodes(episodes: Sequence[Episode], series: Series) -> list[Episode]:
    """Order episodes the way the show declares.

    Seasonal shows list the newest season first, then episodes by ``order``.
    ``order`` is ascending when the series' default order is "Asc" and
    descending otherwise. Episodes without an order go last when descending
    and first when ascending; episodes without a season go last. Ties keep
    upstream order.
    """
    ascending = series.is_ascending

    def order_key(episode: Episode) -> tuple[int, int]:
        if episode.order is None:
            return (0, 0) if ascending else (1, 0)
        return (1, episode.order) if ascending else (0, -episode.order)

    if not series.is_seasonal:
        return sorted(episodes, key=order_key)

    def season_key(episode: Episode) -> tuple[int, int]:
        if episode.season_number is None:
            return (1, 0)
        return (0, -episode.season_number)

    return sorted(episodes, key=lambda episode: (season_key(episode), order_key(episode)))


def render_feed(rss: etree._Element) -> bytes:
    """Serialize a feed document as UTF-8 with a standalone XML declaration."""
    return etree.tostring(
        rss,
        xml_declaration=True,
        encoding="UTF-8",
        standalone=True,
        pretty_print=True,
    )


class FeedBuilder:
    """Builds RSS 2.0 documents with iTunes (and optional media) extensions.

    Example:
        >>> builder = FeedBuilder(config)
        >>> rss, metadata = builder.build(series, episodes, podcast)
        >>> xml_bytes = render_feed(rss)
    """

    def __init__(self, config: "GeneratorConfig") -> None:
        self.config = config

    def channel_image_url(self, series: Series, podcast: Podcast) -> str | None:
        base = self.config.image_base_url
        return resolve_image_url(series.image_assets, base) or resolve_image_url(
            podcast.image_assets, base
        )

    def metadata(self, series: Series, podcast: Podcast) -> FeedMetadata:
        """Summary of the feed for the site generator."""
        title = series.title or podcast.slug.replace("-", " ")
        return FeedMetadata(
            slug=podcast.slug,
            title=clean_title(title),
            image_url=self.channel_image_url(series, podcast),
        )

    def build(
        self,
        series: Series,
        episodes: Sequence[Episode],
        podcast: Podcast,
    ) -> tuple[etree._Element, FeedMetadata]:
        """Build the RSS document and metadata for one podcast.

        Args:
            series: Upstream show metadata
            episodes: Full episode list in upstream order
            podcast: Configured podcast (slug and fallback images)

        Returns:
            Tuple of (rss root element, FeedMetadata)

        Raises:
            FeedBuildError: If upstream values can't be represented in XML
        """
        try:
            return self._build(series, episodes, podcast)
        except ValueError as e:
            raise FeedBuildError(f"Failed to build feed for {podcast.slug}: {e}") from e

    def _build(
        self,
        series: Series,
        episodes: Sequence[Episode],
        podcast: Podcast,
    ) -> tuple[etree._Element, FeedMetadata]:
        config = self.config
        image_url = self.channel_image_url(series, podcast)
        feed_url = config.feed_url(podcast.slug)

        nsmap = {"atom": ATOM_NS, "itunes": ITUNES_NS}
        if config.media_restriction_country:
            nsmap["media"] = MEDIA_NS

        rss = etree.Element("rss", nsmap=nsmap)
        rss.set("version", "2.0")
        channel = etree.SubElement(rss, "channel")

        etree.SubElement(
            channel,
            _atom("link"),
            href=feed_url,
            rel="self",
            type="application/rss+xml",
        )
        etree.SubElement(channel, "title").text = _text(
            series.title or podcast.slug.replace("-", " ")
        )
        etree.SubElement(channel, "link").text = _text(series.presentation_url)
        etree.SubElement(channel, "description").text = _text(series.description)
        etree.SubElement(channel, "language").text = config.language
        etree.SubElement(channel, "copyright").text = config.copyright

        latest = parse_timestamp(series.latest_episode_start_time)
        if latest is not None:
            # Taken from upstream, never the clock
            etree.SubElement(channel, "lastBuildDate").text = format_rfc822(
                latest, config.tzinfo
            )

        etree.SubElement(channel, _itunes("explicit")).text = _yes_no(series.explicit_content)
        etree.SubElement(channel, _itunes("author")).text = config.author
        etree.SubElement(channel, _itunes("block")).text = "yes"
        owner = etree.SubElement(channel, _itunes("owner"))
        etree.SubElement(owner, _itunes("email")).text = config.owner_email
        etree.SubElement(owner, _itunes("name")).text = config.owner_name
        etree.SubElement(channel, _itunes("type")).text = itunes_type(series)
        etree.SubElement(channel, _itunes("new-feed-url")).text = feed_url

        if image_url:
            etree.SubElement(channel, _itunes("image"), href=image_url)
        if series.punchline:
            etree.SubElement(channel, _itunes("subtitle")).text = _text(series.punchline)
        if series.description:
            etree.SubElement(channel, _itunes("summary")).text = _text(series.description)

        self._add_categories(channel, series.categories)

        if (series.number_of_series or 0) > 0:
            etree.SubElement(channel, _itunes("season")).text = str(series.number_of_series)

        for episode in sort_episodes(episodes, series):
            self.build_item(channel, episode, image_url)

        logger.debug(f"Built feed for {podcast.slug} with {len(episodes)} items")

        return rss, self.metadata(series, podcast)

    def build_item(
        self, channel: etree._Element, episode: Episode, channel_image: str | None
    ) -> etree._Element:
        """Append one ``<item>`` for an episode to ``channel``."""
        config = self.config
        item = etree.SubElement(channel, "item")

        if episode.id:
            guid = etree.SubElement(item, "guid", isPermaLink="false")
            guid.text = _text(episode.id)

        etree.SubElement(item, "title").text = _text(episode.title)
        etree.SubElement(item, "description").text = _text(episode.description)
        etree.SubElement(item, "pubDate").text = _text(
            format_timestamp(episode.publish_time, config.tzinfo)
        )
        etree.SubElement(item, _itunes("explicit")).text = _yes_no(episode.explicit_content)
        etree.SubElement(item, _itunes("author")).text = config.author
        etree.SubElement(item, _itunes("duration")).text = format_duration(
            episode.duration_milliseconds
        )

        image_url = resolve_image_url(episode.image_assets, config.image_base_url) or channel_image
        if image_url:
            etree.SubElement(item, _itunes("image"), href=image_url)
        if episode.episode_number is not None:
            etree.SubElement(item, _itunes("episode")).text = str(episode.episode_number)
        if episode.season_number is not None:
            etree.SubElement(item, _itunes("season")).text = str(episode.season_number)
        if episode.presentation_url:
            etree.SubElement(item, "link").text = _text(episode.presentation_url)

        self._add_enclosure(item, episode)
        self._add_categories(item, episode.categories)

        if config.media_restriction_country:
            restriction = etree.SubElement(
                item, _media("restriction"), relationship="allow", type="country"
            )
            restriction.text = config.media_restriction_country
            if image_url:
                etree.SubElement(item, _media("thumbnail"), url=image_url)

        return item

    def _add_enclosure(self, item: etree._Element, episode: Episode) -> None:
        config = self.config
        asset = select_audio_asset(episode.audio_assets, prefer_mp4=config.prefer_mp4)
        if asset is None or not asset.url:
            return

        url = asset.url
        mime_type = mime_type_for(asset.format)
        if (
            config.prefer_mp4
            and (asset.format or "").lower() in MP4_FORMATS
            and config.base_url
            and is_trusted_audio_url(asset.url, config.trusted_audio_domain)
        ):
            url = proxy_audio_url(asset.url, config.base_url)
            mime_type = "audio/mp4"

        enclosure = etree.SubElement(item, "enclosure", url=url, type=mime_type)
        if asset.file_size is not None:
            enclosure.set("length", str(asset.file_size))

    def _add_categories(self, element: etree._Element, categories: Sequence[str]) -> None:
        for category in map_categories(list(categories)):
            etree.SubElement(element, _itunes("category"), text=_text(category))
