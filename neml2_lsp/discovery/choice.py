"""The cached outcome of picking a language server."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ChoiceKind(str, Enum):
    PATH = "path"
    OPTED_OUT = "opted_out"
    UNDECIDED = "undecided"


class ServerChoice(BaseModel):
    """Either a definite server path, an explicit opt-out, or undecided.

    ``Undecided`` makes the next resolution prompt the user again,
    ``OptedOut`` disables the server until the manual restart command.
    """
    
    model_config = ConfigDict(frozen=True)
    
    kind: ChoiceKind
    path: Optional[str] = None
    
    @classmethod
    def of(cls, path: str) -> "ServerChoice":
        return cls(kind=ChoiceKind.PATH, path=path)
    
    @classmethod
    def opted_out(cls) -> "ServerChoice":
        return cls(kind=ChoiceKind.OPTED_OUT)
    
    @classmethod
    def undecided(cls) -> "ServerChoice":
        return cls(kind=ChoiceKind.UNDECIDED)
    
    @property
    def is_path(self) -> bool:
        return self.kind == ChoiceKind.PATH
    
    @property
    def is_opted_out(self) -> bool:
        return self.kind == ChoiceKind.OPTED_OUT
    
    @property
    def is_undecided(self) -> bool:
        return self.kind == ChoiceKind.UNDECIDED
    
    def __str__(self) -> str:
        if self.is_path:
            return f"Path({self.path!r})"
        return "OptedOut" if self.is_opted_out else "Undecided"


OPTED_OUT = ServerChoice.opted_out()
UNDECIDED = ServerChoice.undecided()
