"""
Centralized logging configuration for the audit tools.
Logs to both console and a rotating file (<log_dir>/audit.log).
"""
import logging
import sys
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Union

LOG_FILE_NAME = "audit.log"
MAX_BYTES = 5 * 1024 * 1024  # 5 MB
BACKUP_COUNT = 5

FORMAT_CONSOLE = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"
FORMAT_FILE = "%(asctime)s | %(levelname)-7s | %(name)s | %(filename)s:%(lineno)d | %(message)s"
DATE_FMT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str = "INFO", log_dir: Union[str, Path] = "logs") -> None:
    """Configure root logger with console and rotating file handlers."""
    level_value = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(level_value)

    # Avoid duplicate handlers when called twice in one process
    if root.handlers:
        return

    fmt_console = logging.Formatter(FORMAT_CONSOLE, datefmt=DATE_FMT)
    fmt_file = logging.Formatter(FORMAT_FILE, datefmt=DATE_FMT)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level_value)
    console.setFormatter(fmt_console)
    root.addHandler(console)

    log_file = Path(log_dir) / LOG_FILE_NAME
    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=MAX_BYTES,
            backupCount=BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setLevel(level_value)
        file_handler.setFormatter(fmt_file)
        root.addHandler(file_handler)
    except OSError:
        root.warning("Could not create log file %s; file logging disabled", log_file)

    # Reduce noise from the driver
    logging.getLogger("pymongo").setLevel(logging.WARNING)
    logging.getLogger("motor").setLevel(logging.WARNING)
