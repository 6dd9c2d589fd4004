"""Logging configuration for RoleCase."""

import logging
import sys

# Logger name for the application
LOGGER_NAME = "rolecase"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers held at WARNING so job progress stays readable
QUIET_LOGGERS = ("httpx", "httpcore", "aiosqlite")

_configured = False


def configure_logging(
    level: str | None = None,
    format_string: str = LOG_FORMAT,
    date_format: str = DATE_FORMAT,
) -> logging.Logger:
    """Configure and return the main application logger.

    Module loggers are created with ``logging.getLogger(__name__)`` and live
    under the ``rolecase`` namespace, so they inherit this configuration.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
               Defaults to INFO if not specified.
        format_string: Format string for log messages.
        date_format: Format string for timestamps.

    Returns:
        The configured application logger.
    """
    global _configured

    logger = logging.getLogger(LOGGER_NAME)

    if level is None:
        level = "INFO"
    log_level = getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(log_level)

    if not _configured:
        logger.handlers.clear()

        formatter = logging.Formatter(format_string, datefmt=date_format)
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(log_level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

        # Per-request and per-statement chatter from the HTTP and SQLite layers
        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

        logger.propagate = False
        _configured = True
    else:
        for handler in logger.handlers:
            handler.setLevel(log_level)

    return logger


def reset_logging() -> None:
    """Reset logging configuration (useful for testing)."""
    global _configured

    logger = logging.getLogger(LOGGER_NAME)
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True

    _configured = False
