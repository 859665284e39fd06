"""Build the list of choices offered to the user."""

from enum import Enum
from typing import List, Optional, Sequence

from pydantic import BaseModel, ConfigDict

from .prober import Candidate

OTHER_OPTIONS_LABEL = "Other options..."
BROWSE_LABEL = "Open File..."
BROWSE_DETAIL = "Manually select the language server"
RECENT_LABEL = "Recently used language servers"


class ItemKind(str, Enum):
    CANDIDATE = "candidate"
    SEPARATOR = "separator"
    BROWSE = "browse"
    RECENT = "recent"


class PickItem(BaseModel):
    """One row of the picker."""
    
    model_config = ConfigDict(frozen=True)
    
    label: str
    kind: ItemKind
    detail: Optional[str] = None
    path: Optional[str] = None
    
    @property
    def selectable(self) -> bool:
        return self.kind != ItemKind.SEPARATOR


def sort_candidates(candidates: Sequence[Candidate]) -> List[Candidate]:
    """Oldest first; equal timestamps fall back to the path."""
    unique = {candidate.path: candidate for candidate in candidates}
    return sorted(unique.values(), key=lambda c: (c.last_modified, c.path))


def build_pick_items(candidates: Sequence[Candidate], recent: Sequence[str]) -> List[PickItem]:
    """
    Order discovered candidates and recent choices into picker rows.
    
    Args:
        candidates: Executables found by the prober
        recent: Recently chosen paths, most recent first
        
    Returns:
        Candidates by ascending modification time, a separator, the
        manual browse entry and, when there are any, a second separator
        followed by the recent paths
    """
    items = [
        PickItem(
            label=candidate.path,
            kind=ItemKind.CANDIDATE,
            detail="Last updated " + candidate.last_modified.strftime("%c"),
            path=candidate.path,
        )
        for candidate in sort_candidates(candidates)
    ]
    
    items.append(PickItem(label=OTHER_OPTIONS_LABEL, kind=ItemKind.SEPARATOR))
    items.append(PickItem(label=BROWSE_LABEL, kind=ItemKind.BROWSE, detail=BROWSE_DETAIL))
    
    if recent:
        items.append(PickItem(label=RECENT_LABEL, kind=ItemKind.SEPARATOR))
        items.extend(PickItem(label=path, kind=ItemKind.RECENT, path=path) for path in recent)
    
    return items
