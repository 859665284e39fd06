"""Terminal implementation of the UI collaborator."""

import asyncio
import threading
from typing import Any, Callable, List, Optional, TypeVar

import typer
from rich.console import Console
from rich.markup import escape

from ..discovery.ranker import PickItem
from ..util.filesystem import Filesystem

T = TypeVar("T")


async def read_input(prompt: Callable[..., T], *args: Any) -> T:
    """Run a blocking terminal read on a daemon thread.

    The read is not tied to the loop's default executor, so an interrupted
    session exits without waiting for a line on stdin.
    """
    loop = asyncio.get_running_loop()
    future = loop.create_future()
    
    def deliver(setter: Callable[[Any], None], value: Any) -> None:
        if not future.done():
            setter(value)
    
    def run() -> None:
        try:
            result = prompt(*args)
        except Exception as e:
            loop.call_soon_threadsafe(deliver, future.set_exception, e)
        else:
            loop.call_soon_threadsafe(deliver, future.set_result, result)
    
    threading.Thread(target=run, name="neml2-lsp-input", daemon=True).start()
    return await future


class ConsoleUI:
    """Notices, picker and file dialog on a terminal."""
    
    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()
    
    def show_information_message(self, message: str) -> None:
        self.console.print(f"[blue]i {escape(message)}[/blue]")
    
    def show_error_message(self, message: str) -> None:
        self.console.print(f"[red]✗ {escape(message)}[/red]")
    
    async def show_quick_pick(self, items: List[PickItem], placeholder: str) -> Optional[PickItem]:
        """Print numbered items and read the user's selection.

        Separators are shown as section headers and cannot be picked.
        An empty answer dismisses the picker.
        """
        self.console.print(f"[bold]{escape(placeholder)}[/bold]")
        
        choices: List[PickItem] = []
        for item in items:
            if not item.selectable:
                self.console.print(f"[dim]── {escape(item.label)}[/dim]")
                continue
            choices.append(item)
            line = f"  {len(choices)}. {escape(item.label)}"
            if item.detail:
                line += f"  [dim]{escape(item.detail)}[/dim]"
            self.console.print(line)
        
        while True:
            answer = await read_input(self._prompt, f"Select (1-{len(choices)}, empty to dismiss)")
            if not answer:
                return None
            try:
                index = int(answer) - 1
            except ValueError:
                index = -1
            if 0 <= index < len(choices):
                return choices[index]
            self.console.print("[red]Invalid selection[/red]")
    
    async def show_open_dialog(self) -> Optional[str]:
        answer = await read_input(self._prompt, "Path to the language server (empty to cancel)")
        if not answer:
            return None
        return Filesystem.normalize_path(answer)
    
    @staticmethod
    def _prompt(text: str) -> str:
        try:
            return typer.prompt(text, default="", show_default=False).strip()
        except typer.Abort:
            return ""
