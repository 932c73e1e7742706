"""
Logging configuration
"""

import logging
import sys
from core.config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Libraries that log every statement or request at INFO
NOISY_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool", "httpx", "apscheduler.executors")


def setup_logging(log_file: str = None):
    """
    Configure application logging.

    Records go to stdout and, when ``log_file`` or settings.LOG_FILE is
    set, are also appended to that file.
    """
    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    handlers = [logging.StreamHandler(sys.stdout)]
    log_file = log_file or settings.LOG_FILE
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    logging.basicConfig(
        level=log_level,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=handlers
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    destination = f"stdout and {log_file}" if log_file else "stdout"
    logger.info(f"Logging configured at {settings.LOG_LEVEL} level, writing to {destination}")
