"""Logging setup for cc-switch."""

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

LOG_LEVEL_ENV = "CC_SWITCH_LOG_LEVEL"


def setup_logging(verbose: bool = False) -> None:
    """Configure the ``ccswitch`` logger once per process.

    Args:
        verbose: Force DEBUG level; otherwise CC_SWITCH_LOG_LEVEL or WARNING
    """
    logger = logging.getLogger("ccswitch")
    if verbose:
        level = logging.DEBUG
    else:
        level_name = os.getenv(LOG_LEVEL_ENV, "WARNING").upper()
        level = getattr(logging, level_name, logging.WARNING)
    logger.setLevel(level)
    logger.propagate = False

    if not logger.handlers:
        handler = RichHandler(
            console=Console(stderr=True),
            show_time=False,
            show_path=False,
            rich_tracebacks=True,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)
