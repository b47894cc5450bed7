"""
Logging configuration

The client is embedded in a host application and has no entry point of its
own. Every module only creates a module-level logger; the host calls
``setup_logging()`` once at startup, before wiring the coordinators.
"""

import logging
import sys
from typing import Optional
from core.config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

# Per-request and per-job chatter that drowns out the polling logs
QUIET_LOGGERS = ("httpx", "httpcore", "apscheduler")


def setup_logging(level: Optional[str] = None):
    """
    Configure client logging on stdout.

    Args:
        level: Level name overriding ``settings.LOG_LEVEL``
    """
    level_name = (level or settings.LOG_LEVEL).upper()
    log_level = getattr(logging, level_name, logging.INFO)

    logging.basicConfig(
        level=log_level,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging configured at {level_name} level ({settings.ENVIRONMENT})")
