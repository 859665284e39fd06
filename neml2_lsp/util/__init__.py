"""Utility modules."""

from .log import Log, Logger, LogLevel
from .error import NamedError, ConfigError, StateError, LSPError
from .filesystem import Filesystem

__all__ = [
    "Log",
    "Logger",
    "LogLevel",
    "NamedError",
    "ConfigError",
    "StateError",
    "LSPError",
    "Filesystem",
]
