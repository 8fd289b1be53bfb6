"""Logging helpers shared by every module."""

import logging

DEFAULT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def get_logger(name: str) -> logging.Logger:
    """Return a module logger; configuration is left to the entrypoint."""
    return logging.getLogger(name)


def configure_logging(level: str = "INFO") -> None:
    """
    Configure root logging for CLI runs.

    Args:
        level: Level name (DEBUG, INFO, WARNING, ERROR)

    Raises:
        ValueError: If the level name is unknown
    """
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        raise ValueError(f"Unknown log level: {level}")
    logging.basicConfig(level=numeric, format=DEFAULT_FORMAT)
    logging.getLogger("certledger").setLevel(numeric)
