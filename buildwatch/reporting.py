"""Log reporting for the CLI.

Library modules log through ``logging.getLogger(__name__)`` and never
configure handlers.  The CLI calls ``setup_logging`` once to render the
``buildwatch`` logger's records with rich.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "buildwatch"

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def parse_level(level: str | int) -> int:
    """Map a level name (case-insensitive) or number to a logging level."""
    if isinstance(level, int):
        return level
    try:
        return _LEVELS[level.strip().upper()]
    except KeyError:
        raise ValueError(
            f"Unknown log level {level!r}; expected one of {', '.join(_LEVELS)}"
        ) from None


def setup_logging(level: str | int = "INFO", console: Console | None = None) -> logging.Logger:
    """Attach a single ``RichHandler`` to the ``buildwatch`` logger.

    Repeated calls only update the level.
    """
    logger = logging.getLogger(LOGGER_NAME)
    log_level = parse_level(level)
    logger.setLevel(log_level)

    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(
            console=console or Console(stderr=True),
            show_path=False,
            markup=False,
            rich_tracebacks=True,
        )
        handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
        logger.addHandler(handler)
        logger.propagate = False

    for handler in logger.handlers:
        handler.setLevel(log_level)
    return logger
