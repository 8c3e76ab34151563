"""
Logging setup.

Two outputs:
- Console: short human-readable lines, colored unless NO_COLOR is set or
  stdout is not a terminal
- File (optional): ``<log_dir>/facet.log`` in JSONL, one object per record,
  rotated by size

Records may carry ``component`` (CSM id) and ``context`` (a dict) extras;
both end up in the JSONL entry.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

LOGGER_NAME = "facet"
LOG_FILE = "facet.log"


def _no_color() -> bool:
    return bool(os.environ.get("NO_COLOR")) or not sys.stdout.isatty()


class Colors:
    """ANSI codes."""

    RESET = "\033[0m"
    DIM = "\033[2m"
    DEBUG = "\033[36m"  # Cyan
    INFO = "\033[32m"  # Green
    WARNING = "\033[33m"  # Yellow
    ERROR = "\033[31m"  # Red
    CRITICAL = "\033[35m"  # Magenta
    COMPONENT = "\033[34m"  # Blue


# =============================================================================
# Formatters
# =============================================================================


class JSONLFormatter(logging.Formatter):
    """
    One JSON object per line.

    Example output:
    {"timestamp":"2024-01-15T10:30:45.123Z","level":"WARNING","logger":"facet.core.pipeline","component":"button","message":"Task button@vue failed: ...","context":{"platform":"vue"}}
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        component = getattr(record, "component", None)
        if component:
            entry["component"] = component
        context = getattr(record, "context", None)
        if context:
            entry["context"] = context

        if record.levelno >= logging.WARNING:
            entry["source"] = {"file": record.pathname, "line": record.lineno, "function": record.funcName}

        if record.exc_info and record.exc_info[0]:
            entry["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
            }
        return json.dumps(entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """Human-readable formatter for console output."""

    LEVEL_COLORS = {
        logging.DEBUG: Colors.DEBUG,
        logging.INFO: Colors.INFO,
        logging.WARNING: Colors.WARNING,
        logging.ERROR: Colors.ERROR,
        logging.CRITICAL: Colors.CRITICAL,
    }

    def __init__(self, color: bool | None = None) -> None:
        super().__init__()
        self.color = not _no_color() if color is None else color

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        component = getattr(record, "component", None)

        if self.color:
            prefix = f"{Colors.DIM}{timestamp}{Colors.RESET}"
            if component:
                prefix += f" {Colors.COMPONENT}[{component}]{Colors.RESET}"
        else:
            prefix = f"[{timestamp}]"
            if component:
                prefix += f" [{component}]"

        if record.levelno != logging.INFO:
            level_name = record.levelname
            if self.color:
                level_name = f"{self.LEVEL_COLORS.get(record.levelno, '')}{level_name}{Colors.RESET}"
            prefix = f"{prefix} {level_name}:"

        message = f"{prefix} {record.getMessage()}"
        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)
        return message


# =============================================================================
# Setup
# =============================================================================


def setup_logging(
    level: int | str = logging.INFO,
    log_dir: Path | None = None,
    max_bytes: int = 5 * 1024 * 1024,  # 5MB
    backup_count: int = 3,
    stream: Any = None,
) -> logging.Logger:
    """
    Configure the ``facet`` logger.

    Safe to call more than once; previous handlers are replaced.

    Args:
        level: Minimum level (name or number)
        log_dir: Directory for the JSONL file; console only when None
        max_bytes: Max size per log file before rotation
        backup_count: Number of rotated files to keep
        stream: Console stream (default: stderr)

    Returns:
        The configured ``facet`` logger
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root_logger = logging.getLogger(LOGGER_NAME)
    root_logger.setLevel(level)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(stream or sys.stderr)
    console_handler.setFormatter(ConsoleFormatter())
    console_handler.setLevel(level)
    root_logger.addHandler(console_handler)

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_dir / LOG_FILE,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(JSONLFormatter())
        file_handler.setLevel(level)
        root_logger.addHandler(file_handler)
        root_logger.debug(
            "Logging to %s",
            log_dir / LOG_FILE,
            extra={"context": {"log_format": "jsonl"}},
        )

    return root_logger
