"""Loguru setup for the command line: stderr for the user, a rotating file for the record."""

from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger

LOG_FILE = "savevault.log"
CONSOLE_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level:<7}</level> | {message}"
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level:<7} | {name}:{line} | {message}"


def setup_logger(log_dir: Path | None = None, verbose: bool = False) -> Path | None:
    """
    Replace loguru's default sink.

    The console shows INFO and up (DEBUG with *verbose*).  When *log_dir* is
    given, everything down to DEBUG also goes to ``savevault.log`` there.
    Returns the log file path, or ``None`` when only the console is used.
    """
    logger.remove()
    logger.add(
        sys.stderr,
        level="DEBUG" if verbose else "INFO",
        format=CONSOLE_FORMAT,
        colorize=True,
    )

    if log_dir is None:
        return None

    try:
        log_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.warning(f"Cannot create log folder {log_dir}, logging to console only: {e}")
        return None

    log_file = log_dir / LOG_FILE
    logger.add(
        str(log_file),
        level="DEBUG",
        format=FILE_FORMAT,
        rotation="5 MB",
        retention="7 days",
        encoding="utf-8",
    )
    return log_file
