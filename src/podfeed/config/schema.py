"""Configuration schema models using Pydantic."""

from pathlib import Path
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator

from podfeed.upstream.client import DEFAULT_API_BASE_URL
from podfeed.utils.retry import RetryConfig

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]

DEFAULT_REFRESH_INTERVAL_MINUTES = 15


class GeneratorConfig(BaseModel):
    """Runtime configuration for feed generation and refresh."""

    # Upstream
    api_key: str = ""
    api_base_url: str = DEFAULT_API_BASE_URL
    page_size: int = Field(default=256, ge=1)
    request_timeout_seconds: float = Field(default=30.0, gt=0)
    retry_max_attempts: int = Field(default=3, ge=1)
    retry_base_delay_seconds: float = Field(default=1.0, ge=0)
    retry_max_delay_seconds: float = Field(default=30.0, ge=0)

    # Output
    base_url: str = "https://example.com"
    output_dir: Path = Field(default=Path("output/_site"))
    podcasts_file: Path | None = None

    # Feed content
    prefer_mp4: bool = False
    image_base_url: str = "https://asset.dr.dk/drlyd/images"
    trusted_audio_domain: str = ".dr.dk"
    language: str = "da"
    copyright: str = "DR"
    author: str = "DR"
    owner_name: str = "DR"
    owner_email: str = "podcast@dr.dk"
    feed_timezone: str = "Europe/Copenhagen"
    media_restriction_country: str | None = None

    # Scheduling
    refresh_interval_minutes: int = Field(default=DEFAULT_REFRESH_INTERVAL_MINUTES, gt=0)
    max_backoff_minutes: int = Field(default=60, gt=0)
    failure_threshold: int = Field(default=3, ge=1)
    max_concurrency: int | None = Field(default=None, ge=1)

    log_level: LogLevel = "INFO"

    @field_validator("feed_timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {value}") from e
        return value

    @property
    def feeds_dir(self) -> Path:
        return self.output_dir / "feeds"

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.feed_timezone)

    @property
    def retry_config(self) -> RetryConfig:
        return RetryConfig(
            max_attempts=self.retry_max_attempts,
            base_delay_seconds=self.retry_base_delay_seconds,
            max_delay_seconds=self.retry_max_delay_seconds,
        )

    def feed_path(self, slug: str) -> Path:
        """Canonical location of a podcast's feed file."""
        return self.feeds_dir / f"{slug}.xml"

    def feed_url(self, slug: str) -> str:
        """Public URL of a podcast's feed file."""
        return f"{self.base_url.rstrip('/')}/feeds/{slug}.xml"
