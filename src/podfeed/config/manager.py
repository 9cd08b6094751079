"""Configuration loading from the environment, config files and podcast lists."""

import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from podfeed.config.schema import DEFAULT_REFRESH_INTERVAL_MINUTES, GeneratorConfig
from podfeed.feeds.models import Podcast, PodcastList
from podfeed.utils.errors import ConfigNotFoundError, InvalidConfigError

logger = logging.getLogger(__name__)

# Checked in order when no podcasts file is configured
PODCASTS_FILE_CANDIDATES = (Path("podcasts.json"), Path("/app/podcasts.json"))

TRUE_VALUES = {"true", "1"}


class ConfigManager:
    """Builds a GeneratorConfig and reads the configured podcast list.

    Values come from an optional YAML config file, overridden by environment
    variables.
    """

    def __init__(
        self,
        config_file: Path | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        """Initialize the config manager.

        Args:
            config_file: Optional YAML file with GeneratorConfig fields
            environ: Environment mapping (defaults to os.environ)
        """
        self.config_file = config_file
        self.environ = os.environ if environ is None else environ

    def load_config(self) -> GeneratorConfig:
        """Load and validate configuration.

        Returns:
            Validated GeneratorConfig instance

        Raises:
            ConfigNotFoundError: If an explicit config file doesn't exist
            InvalidConfigError: If any value is invalid
        """
        data = self._read_config_file()
        data.update(self._read_environment())

        try:
            return GeneratorConfig(**data)
        except ValidationError as e:
            raise InvalidConfigError(f"Invalid configuration: {e}") from e

    def _read_config_file(self) -> dict[str, Any]:
        if self.config_file is None:
            return {}
        if not self.config_file.exists():
            raise ConfigNotFoundError(f"Config file not found: {self.config_file}")

        try:
            with open(self.config_file) as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise InvalidConfigError(
                f"Invalid configuration in {self.config_file}: {e}"
            ) from e

        if not isinstance(data, dict):
            raise InvalidConfigError(
                f"Invalid configuration in {self.config_file}: expected a mapping"
            )
        return data

    def _read_environment(self) -> dict[str, Any]:
        env = self.environ
        data: dict[str, Any] = {}

        if "API_KEY" in env:
            data["api_key"] = env["API_KEY"]
        if env.get("BASE_URL"):
            data["base_url"] = env["BASE_URL"]
        if env.get("API_BASE_URL"):
            data["api_base_url"] = env["API_BASE_URL"]
        if env.get("OUTPUT_DIR"):
            data["output_dir"] = Path(env["OUTPUT_DIR"])
        if env.get("PODCASTS_FILE"):
            data["podcasts_file"] = Path(env["PODCASTS_FILE"])
        if "PREFER_MP4" in env:
            data["prefer_mp4"] = env["PREFER_MP4"].strip().lower() in TRUE_VALUES

        if "REFRESH_INTERVAL_MINUTES" in env:
            data["refresh_interval_minutes"] = _positive_int(
                env["REFRESH_INTERVAL_MINUTES"], DEFAULT_REFRESH_INTERVAL_MINUTES
            )
        if env.get("MAX_CONCURRENCY"):
            data["max_concurrency"] = _positive_int(env["MAX_CONCURRENCY"], None)

        return data

    def resolve_podcasts_file(self, config: GeneratorConfig) -> Path:
        """Locate the podcasts file, falling back to well-known locations."""
        if config.podcasts_file is not None:
            return config.podcasts_file
        for candidate in PODCASTS_FILE_CANDIDATES:
            if candidate.exists():
                return candidate
        return PODCASTS_FILE_CANDIDATES[0]

    def load_podcasts(self, config: GeneratorConfig) -> list[Podcast]:
        """Read the configured podcast list.

        ``.json`` files are parsed as JSON, anything else as YAML.

        Raises:
            ConfigNotFoundError: If the podcasts file doesn't exist
            InvalidConfigError: If the file can't be parsed or validated
        """
        path = self.resolve_podcasts_file(config)
        if not path.exists():
            raise ConfigNotFoundError(f"Podcasts file not found: {path}")

        try:
            with open(path, encoding="utf-8") as f:
                if path.suffix.lower() == ".json":
                    data = json.load(f)
                else:
                    data = yaml.safe_load(f) or {}
            podcast_list = PodcastList.model_validate(data)
        except (OSError, ValueError, yaml.YAMLError, ValidationError) as e:
            raise InvalidConfigError(f"Invalid podcasts file {path}: {e}") from e

        if not podcast_list.podcasts:
            logger.warning(f"No podcasts found in {path}")
        return podcast_list.podcasts


def _positive_int(raw: str, default: int | None) -> int | None:
    try:
        value = int(raw.strip())
    except ValueError:
        logger.warning(f"Ignoring non-numeric value {raw!r}, using {default}")
        return default
    return value if value > 0 else default
