"""Standardized logging for the pipeline and the CLI.

Provides three output modes:
- Human mode: [LEVEL] message (colored if TTY)
- Verbose mode: [LEVEL][HH:MM:SS] message
- CI/JSON mode: {"level":"...","ts":"...","msg":"...", ...fields}

Library modules log through ``logging.getLogger(__name__)``; only the CLI
installs handlers, on the ``mdpolyglot`` logger.
"""

import json
import logging
import sys
from datetime import UTC, datetime
from enum import Enum
from typing import Any, TextIO

ROOT_LOGGER = "mdpolyglot"


class LogMode(Enum):
    """Logging output mode."""

    HUMAN = "human"
    VERBOSE = "verbose"
    JSON = "json"


class Colors:
    """ANSI color codes for terminal output."""

    RESET = "\033[0m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    RED = "\033[31m"
    GRAY = "\033[90m"


LEVEL_COLORS = {
    logging.DEBUG: Colors.GRAY,
    logging.INFO: Colors.GREEN,
    logging.WARNING: Colors.YELLOW,
    logging.ERROR: Colors.RED,
    logging.CRITICAL: Colors.RED,
}


def _is_tty(stream: TextIO | None) -> bool:
    return stream is not None and hasattr(stream, "isatty") and stream.isatty()


class HumanFormatter(logging.Formatter):
    """Formatter for human-readable output.

    Format: [LEVEL] message, or [LEVEL][HH:MM:SS] message with timestamps.
    """

    def __init__(self, use_colors: bool = False, timestamps: bool = False) -> None:
        """Initialize human formatter.

        Args:
            use_colors: Whether to use ANSI colors
            timestamps: Whether to add a wall-clock timestamp (verbose mode)
        """
        super().__init__()
        self.use_colors = use_colors
        self.timestamps = timestamps

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record."""
        tag = f"[{record.levelname}]"
        if self.use_colors:
            color = LEVEL_COLORS.get(record.levelno, Colors.RESET)
            tag = f"{color}{tag}{Colors.RESET}"
        if self.timestamps:
            tag += datetime.fromtimestamp(record.created).strftime("[%H:%M:%S]")

        message = f"{tag} {record.getMessage()}"
        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)
        return message


class JSONFormatter(logging.Formatter):
    """Formatter for JSON lines output (machine-readable).

    Format: {"level":"INFO","ts":"2026-01-31T19:45:23+00:00","msg":"...","logger":"..."}
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record as JSON."""
        entry: dict[str, Any] = {
            "level": record.levelname,
            "ts": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "msg": record.getMessage(),
            "logger": record.name,
        }

        extra_data = getattr(record, "extra_data", None)
        if extra_data:
            entry.update(extra_data)
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class PolyglotLogger(logging.Logger):
    """Logger with structured-field support for JSON output."""

    def structured(self, level: int, msg: str, **fields: Any) -> None:
        """Log a message with additional structured fields.

        Args:
            level: Log level
            msg: Log message
            **fields: Extra fields included in JSON output
        """
        if not self.isEnabledFor(level):
            return
        record = self.makeRecord(self.name, level, "(unknown)", 0, msg, (), None)
        if fields:
            record.extra_data = fields  # type: ignore[attr-defined]
        self.handle(record)


logging.setLoggerClass(PolyglotLogger)


def get_logger(name: str = ROOT_LOGGER) -> PolyglotLogger:
    """Get an mdpolyglot logger instance.

    Args:
        name: Logger name

    Returns:
        PolyglotLogger instance
    """
    return logging.getLogger(name)  # type: ignore[return-value]


def setup_logging(
    mode: LogMode = LogMode.HUMAN,
    level: int = logging.INFO,
    stream: TextIO | None = None,
) -> None:
    """Configure the ``mdpolyglot`` logger with the specified mode.

    Args:
        mode: Output mode (human, verbose, json)
        level: Minimum log level
        stream: Output stream (default: stderr, keeping stdout for command output)
    """
    stream = stream or sys.stderr
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    logger.handlers.clear()
    logger.propagate = False

    if mode == LogMode.JSON:
        formatter: logging.Formatter = JSONFormatter()
    else:
        formatter = HumanFormatter(
            use_colors=_is_tty(stream),
            timestamps=mode == LogMode.VERBOSE,
        )

    handler = logging.StreamHandler(stream)
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def configure_from_cli(
    verbose: bool = False,
    quiet: bool = False,
    ci: bool = False,
) -> None:
    """Configure logging based on CLI flags.

    Args:
        verbose: Enable verbose mode with timestamps and debug messages
        quiet: Warnings and errors only
        ci: JSON lines output
    """
    if ci:
        mode = LogMode.JSON
    elif verbose:
        mode = LogMode.VERBOSE
    else:
        mode = LogMode.HUMAN

    if quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    setup_logging(mode=mode, level=level)
