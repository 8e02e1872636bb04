"""Central logging configuration for the library"""

import logging
from typing import Optional


_DEFAULT_LEVEL = logging.WARNING
_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a module-level logger with default configuration applied."""
    logger = logging.getLogger(name)
    if not logging.getLogger().handlers:
        logging.basicConfig(level=_DEFAULT_LEVEL, format=_FORMAT)
    return logger


def set_level(level: str) -> None:
    """Apply a level name (e.g. 'DEBUG') to the richdoc logger hierarchy."""
    logging.getLogger("richdoc").setLevel(level)
