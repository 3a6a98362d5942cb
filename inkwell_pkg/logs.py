"""
Logging setup for Inkwell builds.

Console output is limited to a short list of progress and summary messages;
everything, including per-post debug detail, goes to a timestamped file
under ``logs/``.
"""

import logging
import os
from datetime import datetime
from typing import Optional

LOGGER_NAME = 'Inkwell'


class InfoFilter(logging.Filter):
    """Filter to allow only selected INFO messages to be shown in the console."""
    def filter(self, record):
        if record.levelno >= logging.WARNING:
            return True
        allowed_messages = [
            "Site build completed in",
            "Total posts generated:",
            "Total posts failed:",
            "Building blog index page",
            "Generating RSS feed",
            "Writing syntax stylesheet",
            "Using multiprocessing for",
        ]
        return any(msg in record.getMessage() for msg in allowed_messages)


def setup_logging(logs_dir: Optional[str] = None, log_to_file: bool = True) -> logging.Logger:
    """
    Set up the ``Inkwell`` logger and the package loggers beneath it.

    Args:
        logs_dir: Directory for log files, defaults to ``./logs``
        log_to_file: Write a DEBUG log file next to the console output

    Returns:
        The configured build logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)

    # Module loggers (inkwell_pkg.*) report through the same handlers
    package_logger = logging.getLogger(__package__)
    package_logger.setLevel(logging.DEBUG)

    if not logger.handlers:
        # Console handler with filter
        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.INFO)
        console_handler.addFilter(InfoFilter())
        console_formatter = logging.Formatter('%(message)s')
        console_handler.setFormatter(console_formatter)
        logger.addHandler(console_handler)
        package_logger.addHandler(console_handler)

        if log_to_file:
            # File handler for all logs
            logs_dir = logs_dir or os.path.join(os.getcwd(), 'logs')
            os.makedirs(logs_dir, exist_ok=True)
            log_filename = datetime.now().strftime('inkwell_%Y-%m-%d_%H-%M-%S.log')
            log_filepath = os.path.join(logs_dir, log_filename)

            file_handler = logging.FileHandler(log_filepath, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)
            file_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
            file_handler.setFormatter(file_formatter)
            logger.addHandler(file_handler)
            package_logger.addHandler(file_handler)

    return logger
