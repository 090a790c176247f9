'''
Application-wide logger shared by the API, the services and the batch script.
'''
import logging
import sys

from .config import settings

LOGGER_NAME = 'TV-backend'


def setup_logger(level: str | None = None) -> logging.Logger:
    """Configures the application logger. Handlers are attached only once."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel((level or settings.LOG_LEVEL).upper())

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(module)s.%(funcName)s - %(levelname)s\n - %(message)s'
        ))
        logger.addHandler(handler)

    return logger

log = setup_logger()
