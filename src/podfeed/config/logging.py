"""Logging setup for the podfeed CLI and services."""

import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "podfeed"
FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def setup_logging(
    verbose: bool = False,
    log_file: Path | None = None,
    level: str | None = None,
) -> logging.Logger:
    """Configure the ``podfeed`` logger.

    Console output goes through rich; an optional log file receives plain
    timestamped lines. Calling this again replaces previously installed
    handlers.

    Args:
        verbose: Log at DEBUG instead of the configured level
        log_file: Also write logs to this file
        level: Level name used when not verbose (default INFO)

    Returns:
        The configured package logger
    """
    log_level = logging.DEBUG if verbose else getattr(logging, (level or "INFO").upper())

    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = RichHandler(
        console=Console(stderr=True),
        show_path=verbose,
        rich_tracebacks=True,
        markup=False,
    )
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        logger.addHandler(file_handler)

    logger.setLevel(log_level)
    logger.propagate = False
    return logger
