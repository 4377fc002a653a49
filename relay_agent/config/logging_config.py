"""
Configure logging for the application.

All modules log through the single "relay_agent" logger. It always writes to
stdout and, when a log file is configured, to a size-rotated file as well
(LOG_FILE, logs/relay_agent.log by default; an empty value disables it).
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

from relay_agent.config.constants import DEFAULT_LOG_FILE, LOGGER_NAME

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILE = os.getenv("LOG_FILE", DEFAULT_LOG_FILE).strip() or None

MAX_LOG_SIZE = 10 * 1024 * 1024  # 10 MB
BACKUP_COUNT = 5


def _file_handler(log_file: Union[str, Path], formatter: logging.Formatter) -> logging.Handler:
    path = Path(log_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(path, maxBytes=MAX_LOG_SIZE, backupCount=BACKUP_COUNT)
    handler.setFormatter(formatter)
    return handler


def configure_logging(
    level: str = LOG_LEVEL,
    log_file: Optional[Union[str, Path]] = LOG_FILE,
) -> logging.Logger:
    """
    Configure the application logger.

    Calling it again replaces (and closes) the handlers installed earlier.

    Args:
        level: Name of the log level to apply; unknown names mean INFO
        log_file: Path of the rotating log file, or None/"" for console only

    Returns:
        logging.Logger: The configured logger instance
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        try:
            logger.addHandler(_file_handler(log_file, formatter))
        except OSError as e:
            logger.warning(f"Could not set up file logging at {log_file}: {e}")

    # Prevent log propagation to root logger
    logger.propagate = False

    logger.info("Logging configured" + (f" (file: {log_file})" if log_file else ""))
    return logger
