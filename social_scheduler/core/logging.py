"""
Shared logging setup for the API process and the operator scripts.
"""

import logging
import sys
from typing import Iterable

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# Discovery cache warnings and per-request httpx lines drown out retry logs.
_NOISY_LOGGERS = ("googleapiclient.discovery_cache", "httpx")


def configure_logging(level: str = "INFO", *, quiet: Iterable[str] = _NOISY_LOGGERS) -> None:
    """Send records to stdout at ``level`` and cap chatty library loggers at WARNING."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT, stream=sys.stdout)
    for name in quiet:
        logging.getLogger(name).setLevel(logging.WARNING)


__all__ = ["LOG_FORMAT", "configure_logging"]
