"""
Logger setup shared by the whole service.
"""

import logging

from fleetdash.app.core.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOGGER_NAME = "fleetdash"


def setup_logger() -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)

    # Avoid duplicate handlers on reload
    if logger.handlers:
        return logger

    logger.setLevel(settings.log_level.upper())

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(stream_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Child logger under the service namespace, e.g. ``fleetdash.claims``."""
    setup_logger()
    return logging.getLogger(f"{LOGGER_NAME}.{name}")
