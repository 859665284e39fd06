"""Command-line interface: a terminal host for the language server client."""

import asyncio
import json
import shlex
import sys
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import __version__
from .app import START_SERVER_COMMAND, Extension
from .bus import Event
from .config import Config
from .discovery.prober import probe_candidates
from .discovery.ranker import ItemKind, build_pick_items
from .discovery.recent import RecentChoices
from .document import Document
from .global_config import Path as GlobalPath
from .session.state import SessionStatus
from .state import GlobalState
from .ui.console import ConsoleUI, read_input
from .util.error import NamedError
from .util.log import Log, LogLevel

app = typer.Typer(
    name="neml2-lsp",
    help="Find, launch and manage the NEML2 language server",
    no_args_is_help=True,
)

console = Console()

HELP_TEXT = """Commands:
  open PATH    focus another document
  restart      forget the chosen server and pick again
  status       show the session status
  quit         stop the server and exit"""


@app.command()
def start(
    file: str = typer.Argument(..., help="Document to start the session for"),
    untitled: bool = typer.Option(False, "--untitled", help="Treat FILE as an unsaved buffer"),
    print_logs: bool = typer.Option(False, "--print-logs", help="Print logs to stderr"),
    debug: bool = typer.Option(False, "--debug", help="Log debug messages"),
):
    """Start a language server session for FILE and keep it until quit."""
    asyncio.run(_start_async(file, untitled, print_logs, debug))


async def _start_async(file: str, untitled: bool, print_logs: bool, debug: bool):
    config = Config.get()
    Log.init(print_logs, LogLevel.DEBUG if debug else config.log_level)
    
    if Log.file():
        console.print(f"[dim]Logging to {Log.file()}[/dim]")
    ui = ConsoleUI(console)
    
    def on_status(event: Event):
        console.print(f"[dim]session {event.properties['status']}[/dim]")
    
    try:
        async with Extension(config, ui) as extension:
            extension.bus.subscribe("session.status", on_status)
            await extension.activate(Document.from_path(file, config.language_id, untitled=untitled))
            
            console.print(HELP_TEXT, style="dim")
            while True:
                line = await read_input(_read_line)
                if line is None:
                    break
                parts = shlex.split(line)
                if not parts:
                    continue
                
                command = parts[0]
                if command in ("quit", "exit"):
                    break
                elif command == "restart":
                    await extension.execute_command(START_SERVER_COMMAND)
                elif command == "open" and len(parts) == 2:
                    await extension.on_active_document_changed(
                        Document.from_path(parts[1], config.language_id)
                    )
                elif command == "status":
                    _print_status(extension)
                else:
                    console.print(HELP_TEXT, style="dim")
    finally:
        Log.close()


def _read_line() -> Optional[str]:
    try:
        return input("> ")
    except EOFError:
        return None


def _print_status(extension: Extension):
    session = extension.session
    color = {
        SessionStatus.RUNNING: "green",
        SessionStatus.STARTING: "yellow",
        SessionStatus.FAILED: "red",
    }.get(session.status, "dim")
    console.print(f"Status: [{color}]{session.status.value}[/{color}]")
    console.print(f"Choice: {escape(str(extension.selector.choice))}")
    if session.bound_document:
        console.print(f"Document: {escape(session.bound_document.uri)}")


@app.command()
def discover(
    file: str = typer.Argument(..., help="Document whose parent directories are searched"),
    untitled: bool = typer.Option(False, "--untitled", help="Treat FILE as an unsaved buffer"),
):
    """List the language servers that would be offered for FILE."""
    asyncio.run(_discover_async(file, untitled))


async def _discover_async(file: str, untitled: bool):
    config = Config.get()
    recent = RecentChoices(GlobalState(), config.recent_choices_key, config.max_recent_choices)
    
    document = Document.from_path(file, config.language_id, untitled=untitled)
    candidates = await probe_candidates(document, config.binary_name)
    items = build_pick_items(candidates, recent.list())
    
    table = Table(title=f"{config.client_name} candidates")
    table.add_column("Section")
    table.add_column("Entry")
    table.add_column("Detail", style="dim")
    
    section = "Discovered"
    for item in items:
        if item.kind == ItemKind.SEPARATOR:
            section = item.label
            continue
        table.add_row(section, escape(item.label), escape(item.detail or ""))
    
    console.print(table)
    if not candidates:
        console.print(f"[yellow]No {config.binary_name} executable found above {escape(file)}[/yellow]")


@app.command()
def recent(
    clear: bool = typer.Option(False, "--clear", help="Forget all recently used servers"),
):
    """Show recently used language servers."""
    config = Config.get()
    choices = RecentChoices(GlobalState(), config.recent_choices_key, config.max_recent_choices)
    
    if clear:
        choices.clear()
        console.print("[green]✓ Recent choices cleared[/green]")
        return
    
    paths = choices.list()
    if not paths:
        console.print("[dim]No recently used language servers[/dim]")
        return
    
    for i, path in enumerate(paths, 1):
        console.print(f"  {i}. {escape(path)}")


@app.command()
def config():
    """Show the configuration and where state is kept."""
    current = Config.get()
    console.print(f"[bold]Config file:[/bold] {Config.path()}")
    console.print(f"[bold]State file:[/bold] {GlobalPath.global_state}")
    console.print(json.dumps(current.model_dump(), indent=2))


@app.command()
def version():
    """Show the version."""
    console.print(f"neml2-lsp {__version__}")


def cli_main():
    """CLI entry point wrapper."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        sys.exit(1)
    except NamedError as e:
        console.print(f"[red]Error: {escape(e.message)}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    cli_main()
