"""Configuration for podfeed."""

from podfeed.config.logging import setup_logging
from podfeed.config.manager import ConfigManager
from podfeed.config.schema import GeneratorConfig

__all__ = ["ConfigManager", "GeneratorConfig", "setup_logging"]
