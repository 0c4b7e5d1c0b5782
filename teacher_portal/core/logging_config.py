"""
Logging configuration.

Every module logs through ``logging.getLogger(__name__)``; this installs a
single stdout handler on the root logger.
"""

import logging
import sys

from teacher_portal.core.config import settings


LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: str | None = None) -> logging.Logger:
    """
    Configure the root logger.
    
    Args:
        level: Log level name, defaults to LOG_LEVEL from settings.
    
    Returns:
        The configured root logger.
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO))
    root_logger.handlers = [handler]

    # httpx logs every request at INFO; our own gateway logs cover it
    logging.getLogger("httpx").setLevel(logging.WARNING)

    return root_logger
