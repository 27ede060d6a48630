"""Central logging configuration for drainsim."""

from __future__ import annotations

import logging
from logging import Logger

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(level: int | str = logging.INFO, *, name: str | None = None) -> Logger:
    """Configure root handlers and return the logger for ``name``.

    Modules log through ``logging.getLogger(__name__)``, so passing the
    calling package's name returns the parent of its module loggers.
    """
    logging.basicConfig(level=level, format=LOG_FORMAT)
    return logging.getLogger(name or __name__.partition(".")[0])
