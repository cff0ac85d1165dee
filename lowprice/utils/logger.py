"""
Logging setup for lowprice.

All modules log under the `lowprice` logger tree (`lowprice.data.catalog_client`,
`lowprice.api.server`, ...). Output goes to stdout; the level comes from the
LOG_LEVEL environment variable and can be changed later with `configure_logging`.
"""
import logging
import os
import sys
import time
from typing import Optional

ROOT_LOGGER_NAME = "lowprice"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

logger = logging.getLogger(ROOT_LOGGER_NAME)


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """
    Attach the stdout handler (once) and set the level on the root `lowprice` logger.

    Args:
        level: Level name such as "DEBUG"; defaults to $LOG_LEVEL, then INFO
    """
    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logger.setLevel(level)

    if not logger.handlers:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(console_handler)
    for handler in logger.handlers:
        handler.setLevel(level)

    # Uvicorn installs its own root handlers; avoid duplicate lines
    logger.propagate = False
    return logger


def get_logger(name: str = None) -> logging.Logger:
    """Child logger `lowprice.<name>`, or the root `lowprice` logger when no name is given."""
    if name:
        return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
    return logger


def elapsed_ms(started: float) -> int:
    """Milliseconds since `started` (a `time.time()` value), for request/fetch log lines."""
    return int((time.time() - started) * 1000)


configure_logging()
