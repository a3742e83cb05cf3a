from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path

from spritesheet_editor.config import APP_NAME

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: int = logging.INFO, log_file: Path | None = None) -> logging.Logger:
    """
    Configure the root logger with a console handler and, optionally, a rotating file.

    Safe to call more than once; previously installed handlers are replaced.
    """
    logger = logging.getLogger()
    logger.setLevel(level)

    # Clear duplicate handlers on re-init
    for h in list(logger.handlers):
        logger.removeHandler(h)

    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    ch = logging.StreamHandler()
    ch.setFormatter(fmt)
    ch.setLevel(level)
    logger.addHandler(ch)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.handlers.RotatingFileHandler(
            log_file, maxBytes=10_000_000, backupCount=5, encoding="utf-8"
        )
        fh.setFormatter(fmt)
        fh.setLevel(level)
        logger.addHandler(fh)

    logger.debug("%s logging initialised (file: %s)", APP_NAME, log_file)
    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    """
    Return a logger under the root configured by setup_logging().
    Usage: from spritesheet_editor.logging_config import get_logger; log = get_logger(__name__)
    """
    return logging.getLogger(name or APP_NAME)
