"""Console logging setup for sqldesk."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "sqldesk"


def configure_logging(level: str | int = "WARNING", *, rich_tracebacks: bool = False) -> logging.Logger:
    """Install a RichHandler writing to stderr on the package logger.

    Calling this again replaces the previous handler instead of stacking
    another one.

    Args:
        level: Level name or number for the package logger.
        rich_tracebacks: Render exception tracebacks with rich.

    Returns:
        The configured ``sqldesk`` logger.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.strip().upper())
        if not isinstance(level, int):
            level = logging.WARNING

    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=Console(stderr=True),
        rich_tracebacks=rich_tracebacks,
        show_path=False,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
    return logger
