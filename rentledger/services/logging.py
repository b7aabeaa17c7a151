"""Logging configuration for the API server and CLI commands.

Output goes to stdout and to LOG_FILE, at LOG_LEVEL (default INFO).
Ledger writes, rejected payments and failed regenerations all end up in
the same file, which doubles as the audit trail.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from rentledger.services.config import get_settings

# Map string level names to logging constants
LOG_LEVEL_MAP = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

# Third-party loggers kept at WARNING unless LOG_LEVEL is DEBUG
NOISY_LOGGERS = ("sqlalchemy.engine", "uvicorn.access", "alembic.runtime.migration")


def get_log_level(level_name: Optional[str] = None) -> int:
    """Resolve a level name (default: LOG_LEVEL setting).

    Returns:
        Logging level constant (INFO for unknown names)
    """
    level_str = (level_name or get_settings().log_level).upper()
    return LOG_LEVEL_MAP.get(level_str, logging.INFO)


def setup_server_logging(
    log_file: Optional[str] = None,
    level_name: Optional[str] = None,
    console: bool = True,
) -> None:
    """Configure the root logger with stdout and file handlers.

    Args:
        log_file: Path to log file (default: LOG_FILE setting)
        level_name: Overrides the LOG_LEVEL setting
        console: Also log to stdout (off when stdout carries command output)
    """
    log_path = Path(log_file or get_settings().log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    # [YYYY-MM-DD HH:MM:SS] name - LEVEL - message
    formatter = logging.Formatter(
        fmt="[%(asctime)s] %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    log_level = get_log_level(level_name)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    if console:
        stdout_handler = logging.StreamHandler(sys.stdout)
        stdout_handler.setLevel(log_level)
        stdout_handler.setFormatter(formatter)
        root_logger.addHandler(stdout_handler)

    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setLevel(log_level)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    if log_level > logging.DEBUG:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)


__all__ = ["LOG_LEVEL_MAP", "get_log_level", "setup_server_logging"]
