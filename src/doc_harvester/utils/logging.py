"""
Logging configuration and utilities for doc-harvester.

All module loggers hang off the ``doc_harvester`` root logger, which is
configured once from LoggingSettings with console and rotating-file output.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from doc_harvester.config.settings import LoggingSettings


ROOT_LOGGER_NAME = "doc_harvester"

DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_logging_configured = False


def setup_logging(
    settings: "LoggingSettings | None" = None,
    level: str | None = None,
) -> logging.Logger:
    """
    Configure the application logging system.

    Args:
        settings: Logging configuration. If None, console-only INFO logging.
        level: Overrides the configured level (the CLI's --verbose uses this)

    Returns:
        The configured application root logger
    """
    global _logging_configured

    logger = logging.getLogger(ROOT_LOGGER_NAME)

    if _logging_configured:
        if level is not None:
            _apply_level(logger, getattr(logging, level.upper()))
        return logger

    logger.handlers.clear()

    if settings is None:
        resolved_level = logging.INFO
        formatter = logging.Formatter(
            fmt=DEFAULT_FORMAT, datefmt=DEFAULT_DATE_FORMAT)
        log_to_console = True
        file_path = None
        max_bytes = 10 * 1024 * 1024
        backup_count = 3
    else:
        resolved_level = getattr(logging, settings.level)
        formatter = logging.Formatter(
            fmt=settings.format, datefmt=settings.date_format)
        log_to_console = settings.log_to_console
        file_path = settings.file_path
        max_bytes = settings.max_file_size_mb * 1024 * 1024
        backup_count = settings.backup_count

    if level is not None:
        resolved_level = getattr(logging, level.upper())

    if log_to_console:
        # stderr keeps stdout clean for CLI output
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if file_path is not None:
        logger.addHandler(_create_file_handler(
            file_path=file_path,
            max_bytes=max_bytes,
            backup_count=backup_count,
            formatter=formatter,
        ))

    _apply_level(logger, resolved_level)
    logger.propagate = False
    _logging_configured = True

    return logger


def _apply_level(logger: logging.Logger, level: int) -> None:
    logger.setLevel(level)
    for handler in logger.handlers:
        handler.setLevel(level)


def _create_file_handler(
    file_path: Path,
    max_bytes: int,
    backup_count: int,
    formatter: logging.Formatter,
) -> RotatingFileHandler:
    """Create a rotating file handler, creating the parent directory if needed."""
    file_path.parent.mkdir(parents=True, exist_ok=True)

    handler = RotatingFileHandler(
        filename=str(file_path),
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    handler.setFormatter(formatter)
    return handler


def get_logger(name: str | None = None) -> logging.Logger:
    """
    Get a logger that is a child of the application root logger.

    Args:
        name: Usually __name__. None returns the root logger.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Expansion round complete")
    """
    if name is None:
        return logging.getLogger(ROOT_LOGGER_NAME)

    if name.startswith(ROOT_LOGGER_NAME):
        return logging.getLogger(name)

    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def reset_logging() -> None:
    """Remove all handlers and allow setup_logging to run again."""
    global _logging_configured

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)

    _logging_configured = False


class LoggerAdapter(logging.LoggerAdapter):
    """
    Logger adapter that appends context to every message.

    Example:
        >>> logger = LoggerAdapter(get_logger(__name__), {"session": "a1b2"})
        >>> logger.info("Page scraped")  # "Page scraped [session=a1b2]"
    """

    def process(self, msg: str, kwargs: dict) -> tuple[str, dict]:
        if self.extra:
            context_str = " ".join(f"[{k}={v}]" for k, v in self.extra.items())
            msg = f"{msg} {context_str}"
        return msg, kwargs


def get_logger_with_context(
    name: str | None = None,
    **context: str,
) -> LoggerAdapter:
    """Get a logger whose messages all carry the given key/value context."""
    return LoggerAdapter(get_logger(name), context)
