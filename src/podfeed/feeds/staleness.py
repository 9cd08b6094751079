"""Decide whether a feed needs regenerating.

Skipping unchanged feeds keeps their bytes and mtime stable, so ETag and
Last-Modified caching at the serving layer keeps working.
"""

import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path

import aiofiles
import aiofiles.os
from lxml import etree

from podfeed.feeds.formatting import parse_rfc822, parse_timestamp

logger = logging.getLogger(__name__)


def parse_last_build_date(content: bytes) -> datetime | None:
    """Parse ``channel/lastBuildDate`` out of a serialized feed.

    Raises:
        etree.XMLSyntaxError: If ``content`` is not well-formed XML
    """
    root = etree.fromstring(content)
    return parse_rfc822(root.findtext("channel/lastBuildDate"))


async def read_last_build_date(feed_path: Path) -> datetime | None:
    """Read ``channel/lastBuildDate`` from an existing feed.

    Feeds of long-running shows can be large, so parsing happens in a
    worker thread and sibling tasks keep running meanwhile.

    Returns:
        Parsed date, or None if the file is unreadable, corrupt or undated
    """
    try:
        async with aiofiles.open(feed_path, "rb") as f:
            content = await f.read()
        return await asyncio.to_thread(parse_last_build_date, content)
    except (OSError, etree.XMLSyntaxError) as e:
        logger.debug(f"Cannot read existing feed {feed_path}: {e}")
        return None


async def should_regenerate(
    feed_path: Path, latest_episode_time: str | datetime | None
) -> bool:
    """Whether the feed at ``feed_path`` is stale.

    Fails open: anything that can't be determined means regenerate.

    Args:
        feed_path: Location of the previously written feed
        latest_episode_time: Upstream latest-episode timestamp (raw or parsed)

    Returns:
        True unless the existing feed is at least as new as the upstream time
    """
    if not await aiofiles.os.path.exists(feed_path):
        return True

    if isinstance(latest_episode_time, datetime):
        latest = latest_episode_time
    else:
        latest = parse_timestamp(latest_episode_time)
    if latest is None:
        return True
    if latest.tzinfo is None:
        latest = latest.replace(tzinfo=timezone.utc)

    existing = await read_last_build_date(feed_path)
    if existing is None:
        return True

    # lastBuildDate only has whole seconds
    return latest.replace(microsecond=0) > existing
