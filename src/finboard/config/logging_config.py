"""Logging configuration."""

import logging
import sys
from pathlib import Path
from typing import Optional

from finboard.config.settings import Settings, get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILE_NAME = "finboard.log"
PACKAGE_LOGGER = "finboard"

# Upstream clients log every request at INFO
QUIET_LOGGERS = {
    "sqlalchemy.engine": logging.WARNING,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "yfinance": logging.WARNING,
    "urllib3": logging.WARNING,
    "uvicorn": logging.INFO,
}


def resolve_level(name: Optional[str]) -> Optional[int]:
    """Map a level name to its logging constant; None for unknown names."""
    level = logging.getLevelName((name or "").strip().upper())
    return level if isinstance(level, int) else None


def setup_logging(settings: Optional[Settings] = None) -> None:
    """
    Configure application logging.

    Root logs go to stdout. With ``log_to_file`` the finboard loggers also
    write to ``<data_dir>/finboard.log``; repeated calls never add a second
    file handler.
    """
    settings = settings or get_settings()
    level = resolve_level(settings.log_level)
    unknown_level = level is None
    if unknown_level:
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(level)
    if settings.log_to_file:
        _attach_file_handler(package_logger, settings.get_data_dir() / LOG_FILE_NAME)

    for name, quiet_level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(quiet_level)

    if unknown_level:
        package_logger.warning("Unknown log level %r, using INFO", settings.log_level)


def _attach_file_handler(logger: logging.Logger, path: Path) -> None:
    target = str(path.resolve())
    for handler in logger.handlers:
        if isinstance(handler, logging.FileHandler) and handler.baseFilename == target:
            return
    file_handler = logging.FileHandler(target, encoding="utf-8")
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(file_handler)
