"""Logging for the marketplace service.

Every module logs through ``logging.getLogger(__name__)``; those loggers sit
under the ``marketplace`` logger, which is configured once at startup.
"""

import logging
import logging.handlers
import os
from typing import Optional

ROOT_LOGGER_NAME = "marketplace"

DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"
ISO_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

# Third-party loggers that are chatty at INFO
_QUIET_LOGGERS = ("passlib", "aiosmtplib", "multipart")


def setup_logger(
    name: str = ROOT_LOGGER_NAME,
    log_dir: str = "./logs",
    level: str = "INFO",
    file_logging: bool = False,
    console_logging: bool = True,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
    log_format: Optional[str] = None,
) -> logging.Logger:
    """Configure the package logger with console and rotating file handlers.

    Calling it again only changes the level; handlers are attached once.

    Raises:
        ValueError: Unknown level name
    """
    level_name = level.upper()
    if level_name not in logging.getLevelNamesMapping():
        raise ValueError(f"Invalid log level: {level}")

    logger = logging.getLogger(name)
    logger.setLevel(level_name)
    if logger.handlers:
        return logger

    formatter = logging.Formatter(log_format or DEFAULT_FORMAT, datefmt=ISO_DATE_FORMAT)

    if file_logging:
        os.makedirs(log_dir, exist_ok=True)
        handler = logging.handlers.RotatingFileHandler(
            os.path.join(log_dir, f"{name}.log"),
            maxBytes=max_bytes,
            backupCount=backup_count,
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    if console_logging:
        handler = logging.StreamHandler()
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def configure_logging(settings) -> logging.Logger:
    """Configure service logging from ``Settings``."""
    for noisy in _QUIET_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)
    return setup_logger(
        level=settings.log_level,
        log_dir=settings.log_dir,
        file_logging=settings.log_to_file,
    )
