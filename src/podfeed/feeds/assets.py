"""Image and audio asset selection."""

from collections.abc import Sequence
from urllib.parse import quote, urlsplit

from podfeed.upstream.models import AudioAsset, ImageAsset

MP3_FORMATS = ("mp3",)
MP4_FORMATS = ("mp4", "m4a")

# (target, ratio); ratio None matches any ratio
IMAGE_PRIORITY: tuple[tuple[str, str | None], ...] = (
    ("podcast", "1:1"),
    ("default", "1:1"),
    ("podcast", None),
    ("default", None),
)


def find_image_asset(assets: Sequence[ImageAsset]) -> ImageAsset | None:
    """Pick the best image asset by target/ratio priority."""
    for target, ratio in IMAGE_PRIORITY:
        for asset in assets:
            if (asset.target or "").lower() != target:
                continue
            if ratio is not None and asset.ratio != ratio:
                continue
            return asset
    return None


def resolve_image_url(assets: Sequence[ImageAsset], image_base_url: str) -> str | None:
    """Resolve image assets to a single URL, or None.

    Example:
        >>> resolve_image_url([ImageAsset(id="abc", target="Podcast", ratio="1:1")],
        ...                   "https://asset.dr.dk/drlyd/images")
        'https://asset.dr.dk/drlyd/images/abc'
    """
    asset = find_image_asset(assets)
    if asset is None or not asset.id:
        return None
    return f"{image_base_url.rstrip('/')}/{asset.id}"


def _best_of(assets: Sequence[AudioAsset], formats: tuple[str, ...]) -> AudioAsset | None:
    candidates = [
        asset for asset in assets if (asset.format or "").lower() in formats
    ]
    if not candidates:
        return None
    # max() keeps the first of equal bitrates
    return max(candidates, key=lambda asset: asset.bitrate or 0)


def select_audio_asset(
    assets: Sequence[AudioAsset], prefer_mp4: bool = False
) -> AudioAsset | None:
    """Choose the enclosure asset: highest bitrate in the preferred format.

    mp3 is the only format considered unless ``prefer_mp4`` is set, in which
    case mp4/m4a wins and mp3 is the fallback.
    """
    if prefer_mp4:
        return _best_of(assets, MP4_FORMATS) or _best_of(assets, MP3_FORMATS)
    return _best_of(assets, MP3_FORMATS)


def is_trusted_audio_url(url: str, trusted_domain: str) -> bool:
    """True for https URLs whose host ends with ``trusted_domain``."""
    parts = urlsplit(url)
    host = (parts.hostname or "").lower()
    return parts.scheme == "https" and bool(host) and host.endswith(trusted_domain.lower())


def proxy_audio_url(url: str, base_url: str) -> str:
    """Local audio-proxy URL carrying the upstream path and query."""
    parts = urlsplit(url)
    path_and_query = parts.path + (f"?{parts.query}" if parts.query else "")
    return f"{base_url.rstrip('/')}/proxy/audio?path={quote(path_and_query, safe='')}"
