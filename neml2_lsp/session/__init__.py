"""Language server session lifecycle."""

from .manager import SessionManager
from .state import SessionSnapshot, SessionStatus, transition

__all__ = [
    "SessionManager",
    "SessionSnapshot",
    "SessionStatus",
    "transition",
]
