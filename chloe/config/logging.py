"""
Logging configuration and setup.

Provides console and file output for the ``chloe`` logger tree.
"""

import logging
import sys
from pathlib import Path

from chloe.config.settings import Settings


class ColoredFormatter(logging.Formatter):
    """Formatter that adds color to console output."""

    # ANSI color codes
    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with color without leaking it into other handlers."""
        original = record.levelname
        if original in self.COLORS:
            record.levelname = f"{self.COLORS[original]}{original}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = original


def setup_logging(settings: Settings) -> None:
    """
    Configure logging based on settings.

    discord.py logs through the ``discord`` logger; it is routed through the
    same handlers so gateway reconnects show up next to our own events.

    Args:
        settings: Application settings containing log configuration
    """
    level = getattr(logging, settings.log_level)
    handlers: list[logging.Handler] = []

    # Console handler with color
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(ColoredFormatter(
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))
    handlers.append(console_handler)

    # File handler if configured
    if settings.log_file:
        log_path = Path(settings.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
        handlers.append(file_handler)

    for name, logger_level in (("chloe", level), ("discord", max(level, logging.INFO))):
        logger = logging.getLogger(name)
        logger.setLevel(logger_level)
        logger.handlers.clear()
        for handler in handlers:
            logger.addHandler(handler)
        # Don't propagate to root logger
        logger.propagate = False

    # LiteLLM is chatty at INFO
    logging.getLogger("LiteLLM").setLevel(logging.WARNING)

    root_logger = logging.getLogger("chloe")
    root_logger.info(f"Logging initialized - Level: {settings.log_level}")
    if settings.log_file:
        root_logger.info(f"Logging to file: {settings.log_file}")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance
    """
    if name == "chloe" or name.startswith("chloe."):
        return logging.getLogger(name)
    return logging.getLogger(f"chloe.{name}")
