"""Utility functions and helpers for podfeed."""

from podfeed.utils.errors import (
    ConfigError,
    ConfigNotFoundError,
    FeedBuildError,
    InvalidConfigError,
    PersistError,
    PodfeedError,
    UpstreamError,
)
from podfeed.utils.retry import (
    DEFAULT_RETRY_CONFIG,
    RetryableError,
    RetryConfig,
    TransientHTTPError,
    retry_async,
)

__all__ = [
    # Errors
    "PodfeedError",
    "ConfigError",
    "InvalidConfigError",
    "ConfigNotFoundError",
    "UpstreamError",
    "FeedBuildError",
    "PersistError",
    # Retry
    "RetryConfig",
    "DEFAULT_RETRY_CONFIG",
    "RetryableError",
    "TransientHTTPError",
    "retry_async",
]
