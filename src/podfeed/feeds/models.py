"""Data models for configured podcasts and generated feeds."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from podfeed.upstream.models import ImageAsset, drop_null_entries


class Podcast(BaseModel):
    """A podcast configured for feed generation."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    slug: str = Field(..., min_length=1, pattern=r"^[A-Za-z0-9][A-Za-z0-9._-]*$")
    urn: str = Field(..., min_length=1)
    image_assets: list[ImageAsset] = Field(default_factory=list)

    @field_validator("image_assets", mode="before")
    @classmethod
    def normalize_assets(cls, value):
        return drop_null_entries(value)


class PodcastList(BaseModel):
    """Contents of the podcasts file."""

    podcasts: list[Podcast] = Field(default_factory=list)


class FeedMetadata(BaseModel):
    """Summary of a generated feed, handed to the site generator."""

    model_config = ConfigDict(frozen=True)

    slug: str
    title: str
    image_url: str | None = None


class ProcessOutcome(str, Enum):
    """Terminal state of one podcast in one cycle."""

    DONE = "done"
    SKIPPED = "skipped"
    FAILED = "failed"


class ProcessResult(BaseModel):
    """What happened to one podcast during a cycle."""

    slug: str
    outcome: ProcessOutcome
    metadata: FeedMetadata | None = None
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.outcome is not ProcessOutcome.FAILED
