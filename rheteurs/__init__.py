"""Les Rhéteurs: headless client for the book-discussion salon."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Install a basic stderr handler at ``level`` (default: settings.LOG_LEVEL)."""
    from rheteurs import config

    logging.basicConfig(level=(level or config.settings.LOG_LEVEL).upper(), format=LOG_FORMAT)
