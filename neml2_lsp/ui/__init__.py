"""User interaction."""

from .base import UI
from .console import ConsoleUI, read_input

__all__ = ["UI", "ConsoleUI", "read_input"]
