"""Logging setup for gameperf."""

import logging
import os

from textual.logging import TextualHandler

LOG_LEVEL_ENV = "GAMEPERF_LOG"
LOG_FORMAT = "%(filename)s:%(lineno)d [%(levelname)-5s] - %(message)s"


def default_level() -> str:
    """Log level from the GAMEPERF_LOG environment variable, else INFO."""
    return os.environ.get(LOG_LEVEL_ENV, "INFO").upper()


def configure_logging(
    level: str | None = None,
    log_file: str | None = None,
    tui: bool = False,
) -> None:
    """
    Configure the root logger.

    Args:
        level: Level name; defaults to ``default_level()``.
        log_file: Write records to this file instead of the console.
        tui: Route records through Textual so they do not corrupt the screen.
    """
    if log_file:
        handler: logging.Handler = logging.FileHandler(log_file, encoding="utf-8")
    elif tui:
        handler = TextualHandler()
    else:
        handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    logging.basicConfig(
        level=(level or default_level()).upper(),
        handlers=[handler],
        force=True,
    )
