"""Centralized logging configuration using loguru."""

import sys
from pathlib import Path
from typing import Optional, Union

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[name]}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[name]}:{function}:{line} - {message}"

logger.configure(extra={"name": "bounceback"})

# Replace the default handler with a console handler at INFO
logger.remove()
_console_handler = logger.add(sys.stderr, level="INFO", format=CONSOLE_FORMAT, colorize=True)


def configure_logging(level: str = "INFO", log_file: Optional[Union[str, Path]] = None) -> None:
    """Reconfigure console level and optionally add a rotating file sink.

    Args:
        level: Minimum level for the console handler
        log_file: Optional path for a DEBUG-level log file
    """
    global _console_handler

    logger.remove(_console_handler)
    _console_handler = logger.add(sys.stderr, level=level.upper(), format=CONSOLE_FORMAT, colorize=True)

    if log_file is not None:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            path,
            rotation="10 MB",
            retention="10 days",
            level="DEBUG",
            format=FILE_FORMAT,
            enqueue=True,  # Worker thread and host thread both log
        )


def get_logger(name: Optional[str] = None):
    """Get a logger instance with the given name.

    Args:
        name: Component name shown in log lines

    Returns:
        Configured logger instance
    """
    if name:
        return logger.bind(name=name)
    return logger


__all__ = ["logger", "get_logger", "configure_logging"]
