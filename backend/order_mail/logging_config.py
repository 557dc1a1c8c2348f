"""Centralized logging configuration for the order sync workflow.

This module provides structured logging with context fields for mailbox sync
and order extraction. Logs are written to the console (for Docker logs) and,
when the log directory is writable, to rotating files.

Usage:
    from order_mail.logging_config import get_logger

    logger = get_logger(__name__)
    logger.info("Starting sync", extra={'user_id': user_id})
"""

import logging
import os
from logging.handlers import RotatingFileHandler

# Log directory from environment or default
LOG_DIR = os.getenv("LOG_DIR", "logs")


class StructuredFormatter(logging.Formatter):
    """Custom formatter that adds context fields to log records.

    Supports the following context fields via extra={} parameter:
    - user_id: Owner whose orders are being synced
    - message_id: Mailbox message ID
    - order_id: Platform order ID (or manual/email key)
    """

    def format(self, record):
        """Format log record with context fields."""
        record.user_id = getattr(record, "user_id", None)
        record.message_id = getattr(record, "message_id", None)
        record.order_id = getattr(record, "order_id", None)

        return super().format(record)


def get_logger(name: str) -> logging.Logger:
    """Get configured logger for order sync operations.

    Creates a logger with:
    - Console handler for Docker logs (INFO level)
    - Rotating file handler for all logs (DEBUG level)
    - Separate error file handler (ERROR level)

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logging.Logger instance
    """
    logger = logging.getLogger(name)

    # Skip if already configured (prevents duplicate handlers)
    if logger.handlers:
        return logger

    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    console = logging.StreamHandler()
    console.setLevel(logging.INFO)
    console.setFormatter(
        StructuredFormatter("[%(levelname)s] [user:%(user_id)s] %(message)s")
    )
    logger.addHandler(console)

    try:
        os.makedirs(LOG_DIR, exist_ok=True)
    except OSError as e:
        logger.warning(f"Log directory {LOG_DIR} unavailable, console logging only: {e}")
        return logger

    file_format = StructuredFormatter(
        "[%(asctime)s] [%(levelname)s] [%(name)s] "
        "[user:%(user_id)s msg:%(message_id)s order:%(order_id)s] %(message)s"
    )

    file_handler = RotatingFileHandler(
        os.path.join(LOG_DIR, "order_sync.log"),
        maxBytes=10 * 1024 * 1024,  # 10MB per file
        backupCount=30,
        encoding="utf-8",
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(file_format)
    logger.addHandler(file_handler)

    error_handler = RotatingFileHandler(
        os.path.join(LOG_DIR, "order_errors.log"),
        maxBytes=10 * 1024 * 1024,
        backupCount=30,
        encoding="utf-8",
    )
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(file_format)
    logger.addHandler(error_handler)

    return logger

