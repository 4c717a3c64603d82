"""Logging infrastructure for taskgraph.

Provides the Logger interface used for dependency injection of all output.
"""

from __future__ import annotations

import enum
from abc import ABC, abstractmethod


class LogLevel(enum.Enum):
    """Log verbosity levels for taskgraph messages.

    Lower numeric values represent higher severity / less verbosity.
    """
    FATAL = 0  # Only unrecoverable errors (unreadable or unmergeable Taskfiles)
    ERROR = 1  # Fatal errors plus recoverable errors
    WARN = 2   # Errors plus warnings (auto-approved prompts, cache fallbacks)
    INFO = 3   # Warnings plus the analysis report (default)
    DEBUG = 4  # Info plus provider diagnostics (fetches, cache hits)
    TRACE = 5  # Debug plus fine-grained resolution tracing


class Logger(ABC):
    """Abstract logger.

    Implementations decide where output goes; callers only pick a level.
    Positional and keyword arguments follow rich's Console.print() signature.
    """

    @abstractmethod
    def log(self, level: LogLevel = LogLevel.INFO, *args, **kwargs) -> None:
        """Log a message at the given level."""

    @abstractmethod
    def push_level(self, level: LogLevel) -> None:
        """Temporarily change the active log level."""

    @abstractmethod
    def pop_level(self) -> LogLevel:
        """Restore the previously active log level."""

    def fatal(self, *args, **kwargs) -> None:
        self.log(LogLevel.FATAL, *args, **kwargs)

    def error(self, *args, **kwargs) -> None:
        self.log(LogLevel.ERROR, *args, **kwargs)

    def warn(self, *args, **kwargs) -> None:
        self.log(LogLevel.WARN, *args, **kwargs)

    def info(self, *args, **kwargs) -> None:
        self.log(LogLevel.INFO, *args, **kwargs)

    def debug(self, *args, **kwargs) -> None:
        self.log(LogLevel.DEBUG, *args, **kwargs)

    def trace(self, *args, **kwargs) -> None:
        self.log(LogLevel.TRACE, *args, **kwargs)
