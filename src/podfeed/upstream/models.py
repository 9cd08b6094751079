"""Data models for the upstream podcast catalog API.

The API speaks camelCase JSON and leaves most properties nullable, so every
scalar field here is optional. List fields are normalized to lists with
null entries removed.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class UpstreamModel(BaseModel):
    """Base model accepting camelCase keys and ignoring unknown ones."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


def drop_null_entries(value: Any) -> Any:
    if value is None:
        return []
    if isinstance(value, list):
        return [item for item in value if item is not None]
    return value


class ImageAsset(UpstreamModel):
    """Image reference; resolved to a URL by id."""

    id: str | None = None
    target: str | None = None  # "podcast", "default", ...
    ratio: str | None = None  # "1:1", "16:9", ...


class AudioAsset(UpstreamModel):
    """One encoding of an episode's audio."""

    format: str | None = None
    bitrate: int | None = None  # kbps
    file_size: int | None = None  # bytes
    url: str | None = None


class Episode(UpstreamModel):
    """A single installment of a series."""

    id: str | None = None
    title: str | None = None
    description: str | None = None
    publish_time: str | None = None
    presentation_url: str | None = None
    duration_milliseconds: int | None = None
    audio_assets: list[AudioAsset] = Field(default_factory=list)
    image_assets: list[ImageAsset] = Field(default_factory=list)
    categories: list[str] = Field(default_factory=list)
    episode_number: int | None = None
    season_number: int | None = None
    explicit_content: bool | None = None
    order: int | None = None

    @field_validator("audio_assets", "image_assets", "categories", mode="before")
    @classmethod
    def normalize_lists(cls, value: Any) -> Any:
        return drop_null_entries(value)


class Series(UpstreamModel):
    """Show-level metadata for a series."""

    id: str | None = None
    slug: str | None = None
    type: str | None = None
    title: str | None = None
    punchline: str | None = None
    description: str | None = None
    categories: list[str] = Field(default_factory=list)
    presentation_type: str | None = None  # "Show" means serial
    grouping_type: str | None = None
    default_order: str | None = None  # "Asc" or "Desc"
    latest_episode_start_time: str | None = None
    presentation_url: str | None = None
    explicit_content: bool | None = None
    image_assets: list[ImageAsset] = Field(default_factory=list)
    number_of_episodes: int | None = None
    number_of_series: int | None = None
    number_of_seasons: int | None = None

    @field_validator("categories", "image_assets", mode="before")
    @classmethod
    def normalize_lists(cls, value: Any) -> Any:
        return drop_null_entries(value)

    @property
    def is_seasonal(self) -> bool:
        """Whether episodes are grouped into seasons."""
        if (self.number_of_series or 0) > 0:
            return True
        return (self.grouping_type or "").lower() == "seasons"

    @property
    def is_ascending(self) -> bool:
        return (self.default_order or "").lower() == "asc"


class EpisodePage(UpstreamModel):
    """One page of the episodes listing."""

    items: list[Episode] = Field(default_factory=list)
    next: str | None = None

    @field_validator("items", mode="before")
    @classmethod
    def normalize_items(cls, value: Any) -> Any:
        return drop_null_entries(value)
