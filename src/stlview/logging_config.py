"""
Logging Configuration
Sets up the package logger for the command line tool.
"""
import logging
import sys
from typing import Optional

LOGGER_NAME = "stlview"


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    console_level: Optional[int] = None,
) -> logging.Logger:
    """
    Configures the logger for the 'stlview' namespace.

    Args:
        level: Logging level (e.g. logging.DEBUG, logging.INFO)
        log_file: Optional path to save logs to a file.
        console_level: Threshold for the stderr handler; defaults to ``level``.
            The viewer raises it so log lines do not tear the drawn frame.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # Avoid duplicate handlers when called more than once
    if logger.hasHandlers():
        for handler in list(logger.handlers):
            handler.close()
        logger.handlers.clear()

    # stdout carries the rendered frames in window mode
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level if console_level is None else console_level)

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.debug("Logging initialized.")
    return logger
