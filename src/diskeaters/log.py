"""Logging setup for the command line."""

import logging

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "diskeaters"


def setup_logging(verbose: bool = False) -> logging.Logger:
    """
    Send diskeaters log records to stderr through rich.

    Warnings and errors are always shown; ``verbose`` adds info and debug
    records such as skipped paths. Safe to call more than once.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)

    if not any(isinstance(handler, RichHandler) for handler in logger.handlers):
        handler = RichHandler(
            console=Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)
        logger.propagate = False

    return logger
