"""Custom exceptions for podfeed."""


class PodfeedError(Exception):
    """Base exception for all podfeed errors."""

    pass


class ConfigError(PodfeedError):
    """Configuration-related errors."""

    pass


class InvalidConfigError(ConfigError):
    """Invalid configuration data."""

    pass


class ConfigNotFoundError(ConfigError):
    """Configuration or podcasts file not found."""

    pass


class UpstreamError(PodfeedError):
    """The catalog API could not deliver a usable response."""

    def __init__(
        self, message: str, url: str | None = None, status_code: int | None = None
    ) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class FeedBuildError(PodfeedError):
    """RSS document could not be built from upstream data."""

    pass


class PersistError(PodfeedError):
    """Feed file could not be written to disk."""

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path
