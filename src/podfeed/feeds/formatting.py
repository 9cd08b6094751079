"""Value formatting for RSS output: dates, durations, titles, categories."""

import re
from datetime import datetime, timedelta, timezone, tzinfo

# RFC-822 names are fixed English regardless of locale
DAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
MONTH_NAMES = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)

RFC822_PATTERN = re.compile(
    r"^\s*(?:[A-Za-z]{3}),\s+(\d{1,2})\s+([A-Za-z]{3})\s+(\d{4})\s+"
    r"(\d{2}):(\d{2}):(\d{2})\s+([+-])(\d{2}):?(\d{2})\s*$"
)

FEED_SUFFIX_PATTERN = re.compile(r"\s*\([^)]*feed[^)]*\)\s*$", re.IGNORECASE)

# Danish catalog labels -> iTunes category vocabulary
CATEGORY_MAP: dict[str, str] = {
    "Dokumentar": "Documentary",
    "Historie": "History",
    "Sundhed": "Health & Fitness",
    "Samfund": "Society & Culture",
    "Videnskab og tech": "Science",
    "Tro og eksistens": "Religion & Spirituality",
    "Kriminal": "True Crime",
    "Kultur": "Society & Culture",
    "Nyheder": "News",
    "Underholdning": "Entertainment",
    "Sport": "Sports",
    "Musik": "Music",
}

MIME_TYPES: dict[str, str] = {
    "mp3": "audio/mpeg",
    "mp4": "audio/mp4",
    "m4a": "audio/mp4",
    "aac": "audio/aac",
    "ogg": "audio/ogg",
    "wav": "audio/wav",
    "flac": "audio/flac",
}
DEFAULT_MIME_TYPE = "audio/mpeg"


def format_duration(milliseconds: int | None) -> str:
    """Format a duration as zero-padded ``HH:MM:SS``.

    Hours are not wrapped at 24. Missing or non-positive durations yield "".

    Example:
        >>> format_duration(90_000)
        '00:01:30'
    """
    if not milliseconds or milliseconds <= 0:
        return ""
    total_seconds = milliseconds // 1000
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an upstream ISO-8601 timestamp; naive values are taken as UTC."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_rfc822(moment: datetime, tz: tzinfo) -> str:
    """Render ``moment`` in ``tz`` as ``Wed, 02 Oct 2024 15:00:00 +02:00``."""
    local = moment.astimezone(tz)
    offset = local.utcoffset() or timedelta(0)
    sign = "-" if offset < timedelta(0) else "+"
    offset_minutes = abs(int(offset.total_seconds())) // 60
    hours, minutes = divmod(offset_minutes, 60)
    return (
        f"{DAY_NAMES[local.weekday()]}, {local.day:02d} {MONTH_NAMES[local.month - 1]} "
        f"{local.year:04d} {local.hour:02d}:{local.minute:02d}:{local.second:02d} "
        f"{sign}{hours:02d}:{minutes:02d}"
    )


def format_timestamp(value: str | None, tz: tzinfo) -> str:
    """Convert an upstream timestamp for RSS; unparsable input passes through."""
    parsed = parse_timestamp(value)
    if parsed is None:
        return value or ""
    return format_rfc822(parsed, tz)


def parse_rfc822(value: str | None) -> datetime | None:
    """Parse a date written by :func:`format_rfc822`.

    Returns:
        Timezone-aware datetime, or None if ``value`` doesn't match
    """
    if not value:
        return None
    match = RFC822_PATTERN.match(value)
    if not match:
        return None

    day, month_name, year, hour, minute, second, sign, off_h, off_m = match.groups()
    try:
        month = MONTH_NAMES.index(month_name.capitalize()) + 1
        offset = timedelta(hours=int(off_h), minutes=int(off_m))
        if sign == "-":
            offset = -offset
        return datetime(
            int(year), month, int(day), int(hour), int(minute), int(second),
            tzinfo=timezone(offset),
        )
    except ValueError:
        return None


def clean_title(title: str) -> str:
    """Strip a trailing "(... feed ...)" parenthetical from a show title."""
    return FEED_SUFFIX_PATTERN.sub("", title).strip()


def map_category(category: str) -> str:
    """Translate a catalog category label to iTunes vocabulary."""
    return CATEGORY_MAP.get(category, category)


def map_categories(categories: list[str]) -> list[str]:
    """Map labels, dropping empties and duplicates while keeping order."""
    mapped: list[str] = []
    for category in categories:
        if not category:
            continue
        name = map_category(category)
        if name not in mapped:
            mapped.append(name)
    return mapped


def mime_type_for(audio_format: str | None) -> str:
    """MIME type for an audio format name, defaulting to audio/mpeg."""
    if not audio_format:
        return DEFAULT_MIME_TYPE
    return MIME_TYPES.get(audio_format.lower(), DEFAULT_MIME_TYPE)
