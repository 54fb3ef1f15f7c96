"""
formforge logging setup.

The engine only ever emits records through ``logging.getLogger(__name__)``;
this module is for hosts and the CLI to decide where those records go:

- Console output for humans (colours unless ``NO_COLOR`` or not a TTY)
- Optional JSONL file under ``.formforge/logs/`` for machine consumption
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

ROOT_LOGGER = "formforge"

# =============================================================================
# Terminal Colors (respects NO_COLOR)
# =============================================================================

_NO_COLOR = bool(os.environ.get("NO_COLOR")) or not sys.stderr.isatty()


class Colors:
    """ANSI color codes for terminal output."""

    RESET = "" if _NO_COLOR else "\033[0m"
    DIM = "" if _NO_COLOR else "\033[2m"

    DEBUG = "" if _NO_COLOR else "\033[36m"  # Cyan
    INFO = "" if _NO_COLOR else "\033[32m"  # Green
    WARNING = "" if _NO_COLOR else "\033[33m"  # Yellow
    ERROR = "" if _NO_COLOR else "\033[31m"  # Red
    CRITICAL = "" if _NO_COLOR else "\033[35m"  # Magenta


# =============================================================================
# Formatters
# =============================================================================


class JSONLFormatter(logging.Formatter):
    """
    Formats log records as JSON Lines.

    Each entry is one JSON object with timestamp, level, logger, message,
    and source location for warnings and above.

    Example output:
    {"timestamp":"2024-01-15T10:30:45.123+00:00","level":"WARNING","logger":"formforge.core.hierarchy","message":"Orphaned field ..."}
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = getattr(record, "context", None)
        if context:
            entry["context"] = context

        if record.levelno >= logging.WARNING:
            entry["source"] = {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            }

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

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        component = record.name.removeprefix(f"{ROOT_LOGGER}.")

        if _NO_COLOR:
            prefix = f"[{timestamp}] [{component}]"
        else:
            prefix = f"{Colors.DIM}{timestamp} [{component}]{Colors.RESET}"

        if record.levelno != logging.INFO:
            level_name = record.levelname
            if not _NO_COLOR:
                level_color = self.LEVEL_COLORS.get(record.levelno, "")
                level_name = f"{level_color}{level_name}{Colors.RESET}"
            prefix = f"{prefix} {level_name}:"

        message = f"{prefix} {record.getMessage()}"
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return message


# =============================================================================
# Logger Setup
# =============================================================================


def setup_logging(
    level: int | str = logging.INFO,
    log_dir: Path | str | None = None,
    json_file: bool = False,
    max_bytes: int = 5 * 1024 * 1024,  # 5MB
    backup_count: int = 3,
) -> logging.Logger:
    """
    Configure the ``formforge`` logger.

    Args:
        level: Minimum log level (number or name)
        log_dir: Directory for the JSONL log file
        json_file: Also write JSONL records to ``log_dir/formforge.log``
        max_bytes: Max size per log file before rotation
        backup_count: Number of backup files to keep

    Returns:
        The configured ``formforge`` logger
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    root_logger = logging.getLogger(ROOT_LOGGER)
    root_logger.setLevel(level)
    root_logger.propagate = False

    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(ConsoleFormatter())
    console_handler.setLevel(level)
    root_logger.addHandler(console_handler)

    if json_file:
        directory = Path(log_dir or ".formforge/logs")
        directory.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            directory / "formforge.log",
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(JSONLFormatter())
        file_handler.setLevel(level)
        root_logger.addHandler(file_handler)

    return root_logger
