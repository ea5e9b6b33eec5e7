import logging
import os

from rich.console import Console
from rich.logging import RichHandler


def get_logger(name=None) -> logging.Logger:
    """
    Creates and returns a logger that writes to stderr through RichHandler,
    so log lines never mix with the tab-separated results on stdout.
    """
    if name is None:
        name = "gamerental"
    logger = logging.getLogger(name)
    log_level = logging.DEBUG if os.getenv("DEBUG") else logging.INFO
    logger.setLevel(log_level)

    if not logger.handlers:
        handler = RichHandler(
            console=Console(stderr=True),
            show_time=True,
            show_level=True,
            show_path=False,
            rich_tracebacks=True,
            log_time_format="[%X]",
        )
        handler.setFormatter(logging.Formatter("[%(name)s]  %(message)s"))
        handler.setLevel(log_level)
        logger.addHandler(handler)

        logger.propagate = False
        logger.debug(f"Logger for '{name}' initialized with RichHandler.")

    return logger
