"""podfeed - podcast RSS feeds generated from the DR radio catalog API."""

__version__ = "0.1.0"
