"""Logging setup for the Staffing Planner."""

import logging
import os
from typing import Optional

from config.defaults import DEFAULT_LOG_LEVEL, LOG_LEVEL_ENV

LOG_FORMAT = "%(asctime)s - %(name)s:%(lineno)d - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_LOGGING_CONFIGURED = False


def setup_logging(level: Optional[str] = None) -> None:
    """Configure root logging once per process.

    The level defaults to the STAFFING_LOG_LEVEL environment variable, then INFO.
    """
    global _LOGGING_CONFIGURED
    if _LOGGING_CONFIGURED:
        return

    level_name = (level or os.environ.get(LOG_LEVEL_ENV) or DEFAULT_LOG_LEVEL).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
    )
    _LOGGING_CONFIGURED = True
    logging.getLogger(__name__).debug("Logging configured at %s", level_name)
