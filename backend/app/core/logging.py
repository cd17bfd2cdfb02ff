import logging
import sys

from app.core.config import settings

LOGGER_NAME = "mockitt"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s:%(lineno)d | %(message)s"


def _configure(logger: logging.Logger) -> None:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if settings.DEBUG else logging.INFO)
    logger.propagate = False


def get_logger(name: str = LOGGER_NAME) -> logging.Logger:
    """Return the application logger, configuring it on first use."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        _configure(logger)
    return logger
