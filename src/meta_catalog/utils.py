"""Utility functions for meta-catalog."""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger

ROOT_PATH = "/"


def normalize_directory_path(path: str) -> str:
    """
    Normalize a directory path for storage:
    - Drop trailing slashes, except for the root path

    Whitespace is part of the path and is kept as given.

    Raises:
        ValueError: If the path is empty
    """
    if not path:
        raise ValueError("Directory path must be a non-empty string")

    normalized = path.rstrip("/")
    return normalized or ROOT_PATH


def parent_dir(path: str) -> Optional[str]:
    """Get the parent of a slash separated path.

    A single trailing slash on ``path`` is ignored.

    Examples:
        >>> parent_dir("/foo/bar")
        '/foo'
        >>> parent_dir("/foo/")
        '/'
        >>> parent_dir("/")
    """
    if not path:
        return None

    # Ignore the last character so "/foo/" resolves like "/foo"
    head = path[:-1]
    index = head.rfind("/")
    if index < 0:
        return None
    if index == 0:
        return ROOT_PATH
    return head[:index]


def ancestors(path: str) -> list[str]:
    """List the ancestors of a normalized path, nearest first, ending at the root."""
    result = []
    current = parent_dir(path)
    while current is not None:
        result.append(current)
        current = parent_dir(current)
    return result


def setup_logging(
    env: str,
    home_dir: Path,
    log_file: Optional[str] = None,
    log_level: str = "INFO",
    console: bool = True,
    console_level: Optional[str] = None,
) -> None:  # pragma: no cover
    """
    Configure logging for the application.

    Args:
        env: Environment name, file logging is skipped for "test"
        home_dir: Directory that holds the log file
        log_file: Log file name, relative to home_dir
        log_level: Level for the file sink
        console: Whether to log to stderr
        console_level: Level for the stderr sink, defaults to log_level
    """
    # Remove default handler and any existing handlers
    logger.remove()

    # Add file handler if we are not running tests
    if log_file and env != "test":
        log_path = home_dir / log_file
        log_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(log_path),
            level=log_level,
            rotation="10 MB",
            retention="10 days",
            backtrace=True,
            diagnose=True,
            enqueue=True,
            colorize=False,
        )

    if console:
        logger.add(sys.stderr, level=console_level or log_level, backtrace=True, diagnose=True)

    logger.info(f"ENV: '{env}' Log level: '{log_level}' Logging to {log_file}")
