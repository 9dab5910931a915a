"""Logging setup for repolens."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

_LOGGER_NAME = "repolens"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger under the repolens hierarchy."""
    if name and name != _LOGGER_NAME and not name.startswith(f"{_LOGGER_NAME}."):
        name = f"{_LOGGER_NAME}.{name}"
    return logging.getLogger(name or _LOGGER_NAME)


def configure_logging(*, verbose: bool = False, console: Console | None = None) -> logging.Logger:
    """Send repolens logs to stderr through rich. Called once by the CLI."""
    level = logging.DEBUG if verbose else logging.WARNING
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # Reset handlers so repeated CLI invocations (tests) do not duplicate output
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=verbose,
        markup=False,
        rich_tracebacks=verbose,
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    return logger
