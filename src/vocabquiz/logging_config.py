"""Logging configuration for the exercise engine."""
import logging
import logging.handlers
from pathlib import Path
from typing import Optional

from vocabquiz.config import LoggingSettings, settings


def setup_logging(logging_settings: Optional[LoggingSettings] = None) -> None:
    """Set up logging configuration."""
    logging_settings = logging_settings or settings.logging

    # Create logs directory if it doesn't exist
    if logging_settings.file:
        log_dir = Path(logging_settings.file).parent
        log_dir.mkdir(parents=True, exist_ok=True)

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(logging_settings.level.upper())

    # Remove any existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    # Create formatters
    formatter = logging.Formatter(logging_settings.format)

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # File handler if log file is specified
    if logging_settings.file:
        file_handler = logging.handlers.RotatingFileHandler(
            logging_settings.file,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    # Set logging levels for third-party libraries
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    logging.info("Logging configured successfully")
