from __future__ import annotations

import logging

LOG_FORMAT = "[%(levelname)s][%(name)s][%(message)s]"

_ROOT_LOGGER_NAME = "basekit"

HANDLER = logging.StreamHandler()
HANDLER.setFormatter(logging.Formatter(LOG_FORMAT))


def configure_logging(debug: bool) -> logging.Logger:
    """Set the package log level and attach a single stream handler.

    Debug builds log everything; otherwise only errors get through.
    """
    logger = logging.getLogger(_ROOT_LOGGER_NAME)
    logger.setLevel(logging.DEBUG if debug else logging.ERROR)
    if HANDLER not in logger.handlers:
        logger.addHandler(HANDLER)
    return logger
