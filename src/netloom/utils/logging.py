"""Logging setup."""

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str | int = "WARNING", log_file: str | None = None) -> None:
    """Configure the root logger for the CLI.

    Args:
        level: Level name or number
        log_file: Write to this file instead of stderr
    """
    if isinstance(level, str):
        numeric = logging.getLevelName(level.upper())
        if not isinstance(numeric, int):
            raise ValueError(f"invalid log level: {level}")
        level = numeric

    kwargs: dict = {"level": level, "format": LOG_FORMAT, "force": True}
    if log_file:
        kwargs["filename"] = log_file
        kwargs["filemode"] = "a"
    logging.basicConfig(**kwargs)
