"""Logging configuration for breathcam.

Provides a millisecond-precision formatter and the application-wide
logging setup used by the CLI entry point.
"""

import logging
import sys
import time
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(threadName)-15s] %(levelname)-5s %(filename)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_LOG_FILE = Path("breathcam.log")


class MillisecondFormatter(logging.Formatter):
    """Formatter that includes milliseconds in timestamps.

    The stock formatter drops milliseconds as soon as a custom datefmt is
    given; this one always appends them.
    """

    def formatTime(self, record, datefmt=None):
        """Format the time with milliseconds.

        Args:
            record: LogRecord instance
            datefmt: Date format string

        Returns:
            Formatted timestamp string with milliseconds
        """
        ct = self.converter(record.created)
        if datefmt:
            s = time.strftime(datefmt, ct)
        else:
            s = time.strftime(DATE_FORMAT, ct)
        s = f"{s}.{int(record.msecs):03d}"
        return s


def setup_logging(log_level: str = "INFO", log_file: Optional[Path] = None) -> None:
    """Configure application-wide logging.

    The root logger captures everything. The file handler records DEBUG and
    above; the stdout handler honours ``log_level``. The camera worker and
    frame loop run on their own threads, so the thread name is part of
    every line.

    Log format: YYYY-MM-DD HH:MM:SS.mmm [ThreadName     ] LEVEL  filename.py:line - message

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to log file (default: breathcam.log in current directory)
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)
    formatter = MillisecondFormatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    handlers: list[logging.Handler] = []

    if log_file is None:
        log_file = DEFAULT_LOG_FILE

    try:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)
    except OSError as e:
        # Keep going with console logging only
        print(f"Warning: Could not create log file {log_file}: {e}", file=sys.stderr)
        log_file = None

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setLevel(numeric_level)
    stream_handler.setFormatter(formatter)
    handlers.append(stream_handler)

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()
    root_logger.setLevel(logging.DEBUG)

    for handler in handlers:
        root_logger.addHandler(handler)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging initialized at level {log_level}")
    if log_file:
        logger.info(f"Log file: {log_file.absolute()}")


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for a module.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Returns:
        Logger instance

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Camera configured")
    """
    return logging.getLogger(name)
