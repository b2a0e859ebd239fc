"""Structured logging configuration."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

from gcs_auth.models import LoggingConfig

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(config: LoggingConfig | None = None) -> logging.Logger:
    """Configure logging with Rich console handler and optional file handler.

    Args:
        config: Logging configuration. Uses defaults if None.

    Returns:
        The root logger for gcs_auth.
    """
    if config is None:
        config = LoggingConfig()

    logger = logging.getLogger("gcs_auth")
    logger.setLevel(getattr(logging, config.level.upper(), logging.INFO))
    logger.handlers.clear()

    # stderr keeps stdout clean for `gcs-auth token`
    console_handler = RichHandler(
        console=Console(stderr=True),
        show_time=True,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )
    console_handler.setLevel(logging.DEBUG)
    logger.addHandler(console_handler)

    if config.file:
        file_handler = logging.FileHandler(config.file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(file_handler)

    return logger
