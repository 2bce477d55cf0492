"""
Logging setup for the ``docinsight.*`` logger namespace.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """
    Attach a stream handler to the ``docinsight`` logger.

    Safe to call more than once (e.g. one app per test): the handler is only
    added the first time, the level is always applied.
    """
    logger = logging.getLogger("docinsight")
    logger.setLevel((level or settings.log_level).upper())

    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
