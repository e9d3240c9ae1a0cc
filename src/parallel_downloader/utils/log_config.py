"""Logging setup for the command-line tool."""

import logging
import logging.handlers
import sys
from enum import Enum
from pathlib import Path
from typing import List, Union

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUP_COUNT = 3

# Handlers installed by setup_logging, replaced on the next call
_installed_handlers: List[logging.Handler] = []


class OutputMode(str, Enum):
    """Where log records are written."""

    FILE = "file"
    STDERR = "stderr"
    BOTH = "both"


def setup_logging(
    level: Union[int, str] = logging.INFO,
    path: Union[str, Path] = "parallel-downloader.log",
    output: Union[OutputMode, str] = OutputMode.FILE
) -> logging.Logger:
    """Configure the root logger.

    File output rotates at 10 MiB and keeps three backups. Calling this again
    swaps out the handlers installed by the previous call and leaves any other
    handlers alone.

    Args:
        level: Log level name or number
        path: Log file path, used for FILE and BOTH
        output: Output mode

    Returns:
        The configured root logger

    Raises:
        ValueError: If level or output is unknown
    """
    output = OutputMode(output)
    if isinstance(level, str):
        numeric = logging.getLevelName(level.upper())
        if not isinstance(numeric, int):
            raise ValueError(f"Unknown log level: {level}")
        level = numeric

    root = logging.getLogger()
    for handler in _installed_handlers:
        root.removeHandler(handler)
        handler.close()
    _installed_handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    if output in (OutputMode.FILE, OutputMode.BOTH):
        log_path = Path(path)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=MAX_LOG_BYTES,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8"
        )
        _installed_handlers.append(file_handler)

    if output in (OutputMode.STDERR, OutputMode.BOTH):
        _installed_handlers.append(logging.StreamHandler(sys.stderr))

    for handler in _installed_handlers:
        handler.setFormatter(formatter)
        handler.setLevel(level)
        root.addHandler(handler)

    root.setLevel(level)
    return root
