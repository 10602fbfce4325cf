"""
Logger Utility
==============

Context-prefixed logging for the turn runner:

1. Log levels (DEBUG, INFO, WARNING, ERROR) filtered by LOG_LEVEL
2. Timestamped, color-coded terminal output
3. Child loggers for nested components
4. Timers for measuring how long a step takes

Usage:
    from kbagent.utils.logger import Logger

    logger = Logger("ThreadRunner")
    logger.info("Turn started", {"thread_id": "T1"})

    with logger.timer("run_turn"):
        ...
"""

import json
import os
import sys
import time
from contextlib import contextmanager
from datetime import datetime
from enum import IntEnum
from typing import Any, Iterator


class LogLevel(IntEnum):
    """Log levels with numeric values for comparison."""
    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40


class Colors:
    """ANSI escape codes for colored terminal output."""
    RESET = "\033[0m"
    DEBUG = "\033[36m"    # Cyan
    INFO = "\033[32m"     # Green
    WARNING = "\033[33m"  # Yellow
    ERROR = "\033[31m"    # Red
    DIM = "\033[2m"


def _get_log_level_from_env() -> LogLevel:
    """Parse the LOG_LEVEL environment variable, defaulting to INFO."""
    level_str = os.getenv("LOG_LEVEL", "INFO").upper()
    level_map = {
        "DEBUG": LogLevel.DEBUG,
        "INFO": LogLevel.INFO,
        "WARNING": LogLevel.WARNING,
        "WARN": LogLevel.WARNING,
        "ERROR": LogLevel.ERROR,
    }
    return level_map.get(level_str, LogLevel.INFO)


class Logger:
    """
    A context-aware logger with colored output.

    Example:
        logger = Logger("Knowledge")
        logger.debug("Searching", {"kb": "docs", "k": 2})

        child = logger.child("docs")
        child.info("Provider ready")  # [Knowledge:docs] Provider ready
    """

    def __init__(self, context: str = ""):
        """
        Args:
            context: A prefix for all log messages (e.g., "ThreadRunner")
        """
        self.context = context
        self._min_level = _get_log_level_from_env()

    def child(self, child_context: str) -> "Logger":
        """Create a child logger whose context is ``parent:child``."""
        new_context = f"{self.context}:{child_context}" if self.context else child_context
        return Logger(new_context)

    def _format_message(self, level: str, message: str, color: str) -> str:
        """
        Output format: [TIMESTAMP] [LEVEL] [context] message
        """
        timestamp = datetime.now().isoformat(timespec="seconds")
        context_str = f"[{self.context}] " if self.context else ""

        return (
            f"{Colors.DIM}[{timestamp}]{Colors.RESET} "
            f"{color}[{level}]{Colors.RESET} "
            f"{context_str}{message}"
        )

    def _log(
        self,
        level: LogLevel,
        level_name: str,
        color: str,
        message: str,
        data: dict[str, Any] | None = None
    ) -> None:
        if level < self._min_level:
            return

        formatted = self._format_message(level_name, message, color)

        # stdout is reserved for command output
        stream = sys.stderr
        print(formatted, file=stream)

        if data:
            data_str = json.dumps(data, indent=2, default=str)
            print(f"{Colors.DIM}{data_str}{Colors.RESET}", file=stream)

    def debug(self, message: str, data: dict[str, Any] | None = None) -> None:
        """Log a debug message. Only shown when LOG_LEVEL=DEBUG."""
        self._log(LogLevel.DEBUG, "DEBUG", Colors.DEBUG, message, data)

    def info(self, message: str, data: dict[str, Any] | None = None) -> None:
        """Log an info message."""
        self._log(LogLevel.INFO, "INFO", Colors.INFO, message, data)

    def warning(self, message: str, data: dict[str, Any] | None = None) -> None:
        """Log a warning message."""
        self._log(LogLevel.WARNING, "WARN", Colors.WARNING, message, data)

    def error(self, message: str, error: BaseException | None = None) -> None:
        """
        Log an error message. Always shown regardless of log level.

        Args:
            message: The error message
            error: Optional exception to include details from
        """
        data = None
        if error:
            data = {
                "error_type": type(error).__name__,
                "error_message": str(error),
            }
        self._log(LogLevel.ERROR, "ERROR", Colors.ERROR, message, data)

    @contextmanager
    def timer(self, label: str) -> Iterator[None]:
        """
        Log how long the wrapped block took, at debug level.

        The elapsed time is logged whether the block returns or raises.

        Example:
            with logger.timer("run_turn"):
                await runner.run_turn(...)
            # [DEBUG] [ThreadRunner] run_turn: 812.4ms
        """
        start = time.perf_counter()
        try:
            yield
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            self.debug(f"{label}: {elapsed_ms:.1f}ms")


# Default logger instance for general use
logger = Logger("KBAgent")
