"""Loguru sinks shared by the crawler, the API and the CLI."""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Optional

from loguru import logger


CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - "
    "<level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {process}:{thread.name} | {name}:{line} - {message}"


def configure_logging(level: Optional[str] = None, log_dir: Optional[str] = None) -> Path:
    """(Re)install the console and rotating file sinks.

    Args:
        level: Minimum level for both sinks, ``LOG_LEVEL`` or INFO when omitted
        log_dir: Directory for ``hospital_scraper.log``, ``LOG_DIR`` or ``logs`` when omitted

    Returns:
        Path of the log file
    """
    level = (level or os.getenv("LOG_LEVEL") or "INFO").upper()
    directory = Path(log_dir or os.getenv("LOG_DIR") or "logs")
    directory.mkdir(parents=True, exist_ok=True)
    log_file = directory / "hospital_scraper.log"

    logger.remove()
    logger.add(sys.stdout, level=level, format=CONSOLE_FORMAT)
    # Crawl workers log from several threads at once
    logger.add(
        log_file,
        level=level,
        format=FILE_FORMAT,
        rotation="10 MB",
        retention="10 days",
        encoding="utf-8",
        enqueue=True,
    )
    return log_file


configure_logging()

__all__ = ["configure_logging", "logger"]
