import logging
import os
import sys

from .errors import StoragePathError
from .paths import create_and_get_log_path

FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
DATEFMT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str = "WARNING", log_file: str | None = None) -> None:
    """Terminal logging on stderr plus a DEBUG file log when one is available.

    stdout carries command output, so nothing is logged there.
    """
    logger = logging.getLogger("lectio-diei")
    logger.setLevel(logging.DEBUG)
    formatter = logging.Formatter(fmt=FORMAT, datefmt=DATEFMT)

    # Avoid duplicate handlers when called more than once
    if not any(type(h) is logging.StreamHandler for h in logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(level.upper())
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    if any(isinstance(h, logging.FileHandler) for h in logger.handlers):
        return
    path = log_file or os.getenv("LECTIO_LOG_FILE")
    try:
        if not path:
            path = str(create_and_get_log_path())
        file_handler = logging.FileHandler(path, encoding="utf-8")
    except (StoragePathError, OSError) as exc:
        logger.error("Failed to initialize file log: %s", exc)
        return
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)
