# Configures logging for the te_utils package.

"""
Extended Description:
Sets up logging for the package logger (or any named logger) to stderr and,
optionally, to a file. Existing handlers on that logger are closed and removed
first so repeated calls never duplicate output. Modules in the package log
through `logging.getLogger(__name__)`, so configuring the package logger is
enough to see the debug messages emitted by the encoding stages (for instance
the zero-denominator fallback in `apply_encodings`).
"""

import logging
import sys
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(name)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

def setup_logging(
    log_level: str = 'INFO',
    log_file: Optional[str] = None,
    logger_name: Optional[str] = 'te_utils'
) -> logging.Logger:
    """Configures a logger and returns it.

    Args:
        log_level (str, optional): The minimum logging level (e.g., 'DEBUG', 'INFO',
                                   'WARNING', 'ERROR', 'CRITICAL').
                                   Defaults to 'INFO'.
        log_file (Optional[str], optional): Path to a file to also log messages to.
                                          Defaults to None.
        logger_name (Optional[str], optional): Logger to configure. None configures
                                             the root logger. Defaults to 'te_utils'.

    Returns:
        logging.Logger: The configured logger.

    Raises:
        ValueError: If an invalid log_level is provided.
    """
    level = getattr(logging, log_level.upper(), None)
    if not isinstance(level, int):
        raise ValueError(f"Invalid log level: {log_level}")

    formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)
    logger = logging.getLogger(logger_name)

    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)

    handlers = [logging.FileHandler(log_file, mode='a')] if log_file else []
    handlers.append(logging.StreamHandler(sys.stderr))
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.setLevel(level)
    if logger_name is not None:
        # Package output is handled here, do not repeat it on the root logger.
        logger.propagate = False

    return logger
