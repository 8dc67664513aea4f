from __future__ import annotations

import logging
from typing import Optional

FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logger(name: str = "healthscreen", log_file: Optional[str] = None, level: int = logging.INFO) -> logging.Logger:
    """Configure the package logger once: console handler plus an optional file handler.

    Module loggers (``logging.getLogger(__name__)``) propagate to it.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    if not logger.handlers:
        formatter = logging.Formatter(FORMAT)

        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

        if log_file:
            file_handler = logging.FileHandler(log_file)
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    return logger
