"""The editor-facing side of the client: notices, picker and file dialog."""

from typing import TYPE_CHECKING, List, Optional, Protocol

if TYPE_CHECKING:
    from ..discovery.ranker import PickItem


class UI(Protocol):
    """What the client needs from its host to talk to the user."""
    
    def show_information_message(self, message: str) -> None:
        ...
    
    def show_error_message(self, message: str) -> None:
        ...
    
    async def show_quick_pick(self, items: List["PickItem"], placeholder: str) -> Optional["PickItem"]:
        """Let the user pick one of ``items``; None when dismissed."""
        ...
    
    async def show_open_dialog(self) -> Optional[str]:
        """Ask for a single file; None when dismissed."""
        ...
