"""Session state machine.

``transition`` is a pure function from the current snapshot and an event
to the next snapshot and the effects the manager has to carry out. Every
restart or stop bumps ``generation``; events carrying an older generation
belong to a superseded attempt and never change the status.
"""

from enum import Enum
from typing import List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict

from ..discovery.choice import OPTED_OUT, UNDECIDED, ServerChoice
from ..document import Document

START_FAILED_MESSAGE = "Failed to start NEML2 language server."


class SessionStatus(str, Enum):
    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"
    FAILED = "failed"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class SessionSnapshot(_Frozen):
    status: SessionStatus = SessionStatus.STOPPED
    generation: int = 0
    bound_document: Optional[Document] = None


# Events

class Restart(_Frozen):
    """Start over; ``reset_choice`` forces the user to pick again."""
    document: Optional[Document] = None
    reset_choice: bool = False


class Stop(_Frozen):
    pass


class FocusChanged(_Frozen):
    document: Document
    matches: bool


class Resolved(_Frozen):
    generation: int
    choice: ServerChoice


class Started(_Frozen):
    generation: int


class StartFailed(_Frozen):
    generation: int
    error: str


SessionEvent = Union[Restart, Stop, FocusChanged, Resolved, Started, StartFailed]


# Effects

class StopConnection(_Frozen):
    """Stop every connection and wait until they are gone."""
    pass


class ResetChoice(_Frozen):
    choice: ServerChoice


class ResolveChoice(_Frozen):
    generation: int
    document: Optional[Document] = None


class StartConnection(_Frozen):
    generation: int
    path: str


class DiscardConnection(_Frozen):
    """Stop the connection created by ``generation`` if it still exists."""
    generation: int


class ShowError(_Frozen):
    message: str


class OpenDocument(_Frozen):
    document: Document


SessionEffect = Union[StopConnection, ResetChoice, ResolveChoice, StartConnection, DiscardConnection, ShowError, OpenDocument]


def transition(snapshot: SessionSnapshot, event: SessionEvent) -> Tuple[SessionSnapshot, List[SessionEffect]]:
    """Apply ``event`` to ``snapshot``."""
    if isinstance(event, Restart):
        generation = snapshot.generation + 1
        document = event.document or snapshot.bound_document
        effects: List[SessionEffect] = [StopConnection()]
        if event.reset_choice:
            effects.append(ResetChoice(choice=UNDECIDED))
        effects.append(ResolveChoice(generation=generation, document=document))
        return SessionSnapshot(
            status=SessionStatus.STARTING,
            generation=generation,
            bound_document=document,
        ), effects
    
    if isinstance(event, Stop):
        return snapshot.model_copy(update={
            "status": SessionStatus.STOPPED,
            "generation": snapshot.generation + 1,
        }), [StopConnection()]
    
    if isinstance(event, FocusChanged):
        if not event.matches:
            return snapshot, []
        if snapshot.bound_document is not None and snapshot.bound_document.uri == event.document.uri:
            return snapshot, []
        bound = snapshot.model_copy(update={"bound_document": event.document})
        if snapshot.status == SessionStatus.RUNNING:
            return bound, [OpenDocument(document=event.document)]
        if snapshot.status == SessionStatus.STARTING:
            return bound, []
        return transition(bound, Restart(document=event.document))
    
    if event.generation != snapshot.generation:
        if isinstance(event, (Started, StartFailed)):
            return snapshot, [DiscardConnection(generation=event.generation)]
        return snapshot, []
    
    if isinstance(event, Resolved):
        if not event.choice.is_path:
            return snapshot.model_copy(update={"status": SessionStatus.STOPPED}), []
        return snapshot, [StartConnection(generation=event.generation, path=event.choice.path)]
    
    if isinstance(event, Started):
        effects = []
        if snapshot.bound_document is not None:
            effects.append(OpenDocument(document=snapshot.bound_document))
        return snapshot.model_copy(update={"status": SessionStatus.RUNNING}), effects
    
    if isinstance(event, StartFailed):
        return snapshot.model_copy(update={"status": SessionStatus.FAILED}), [
            DiscardConnection(generation=event.generation),
            ResetChoice(choice=OPTED_OUT),
            ShowError(message=START_FAILED_MESSAGE),
        ]
    
    raise TypeError(f"Unknown session event: {event!r}")
