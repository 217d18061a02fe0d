"""Logging setup for fixture runs."""

import logging

from fixtureseed.config.settings import get_settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: str | None = None) -> None:
    """Configure the root logger. Defaults to the FIXTURES_LOG_LEVEL setting."""
    level = level or get_settings().LOG_LEVEL
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT, force=True)
