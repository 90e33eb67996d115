"""Centralized logging configuration using loguru."""

import logging
import sys

import structlog
from loguru import logger

# Remove default DEBUG handler and set INFO level with forced colors
# colorize=True forces ANSI colors even without TTY (needed for k8s/stern)
logger.remove()
logger.add(sys.stderr, level="INFO", colorize=True)


def configure_logging(level: str = "INFO") -> None:
    """Apply the configured log level to loguru and structlog."""
    level = level.upper()
    logger.remove()
    logger.add(sys.stderr, level=level, colorize=True)

    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level)
        ),
    )


__all__ = ["logger", "configure_logging"]
