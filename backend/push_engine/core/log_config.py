"""
Loguru sink configuration shared by the API and Celery workers
"""

import sys
from typing import Optional

from loguru import logger

from push_engine.core.config import settings


def configure_logging(level: Optional[str] = None) -> None:
    """Replace the default stderr sink with one honouring ``LOG_LEVEL``."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=(level or settings.LOG_LEVEL).upper(),
        backtrace=settings.DEBUG,
        diagnose=settings.DEBUG,
    )
