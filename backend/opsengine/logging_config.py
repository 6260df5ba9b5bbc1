# Overview: Logging setup for the opsengine package.

import logging

PACKAGE_LOGGER = "opsengine"
_HANDLER_NAME = "opsengine-stream"

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(app) -> logging.Logger:
    """Attach one stream handler to the package logger at LOG_LEVEL.

    Safe to call once per app; repeated calls only adjust the level.
    """
    level_name = str(app.config.get("LOG_LEVEL", "INFO")).upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)

    if not any(getattr(h, "name", None) == _HANDLER_NAME for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

    return logger
