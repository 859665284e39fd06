"""The long-lived controller that ties discovery and the session together."""

from typing import Awaitable, Callable, Dict, Mapping, Optional

from .bus import EventBus
from .config import ConfigModel
from .discovery.prober import probe_candidates
from .discovery.recent import RecentChoices
from .discovery.selector import Prober, Selector
from .document import Document
from .session.manager import ClientFactory, SessionManager
from .state import GlobalState
from .ui.base import UI
from .util.log import Log

START_SERVER_COMMAND = "neml2-language-support.start-server"


class Extension:
    """Owns the server choice, the recent choices and the session.

    One instance is created when the host activates the client and torn
    down with ``deactivate``; host callbacks receive it explicitly.
    """
    
    _log = Log.create({"service": "extension"})
    
    def __init__(
        self,
        config: ConfigModel,
        ui: UI,
        state: Optional[GlobalState] = None,
        environ: Optional[Mapping[str, str]] = None,
        client_factory: Optional[ClientFactory] = None,
        bus: Optional[EventBus] = None,
        prober: Prober = probe_candidates,
    ):
        self.config = config
        self.ui = ui
        self.bus = bus or EventBus()
        self.recent = RecentChoices(state or GlobalState(), config.recent_choices_key, config.max_recent_choices)
        self.selector = Selector(config, ui, self.recent, environ=environ, prober=prober)
        self.session = SessionManager(self.selector, ui, config, client_factory=client_factory, bus=self.bus)
        self.commands: Dict[str, Callable[[], Awaitable[None]]] = {
            START_SERVER_COMMAND: self.start_server,
        }
    
    async def activate(self, active_document: Optional[Document] = None) -> None:
        """Try to start a server for the document active at startup."""
        self._log.info("activating", {"document": active_document.uri if active_document else None})
        await self.session.restart(active_document)
    
    async def on_active_document_changed(self, document: Optional[Document]) -> None:
        if document is None:
            return
        await self.session.focus_changed(document)
    
    async def start_server(self) -> None:
        """Forget the current choice and start over for the bound document."""
        self._log.info("manual restart")
        await self.session.restart(reset_choice=True)
    
    async def execute_command(self, command_id: str) -> bool:
        """Run a registered command; False if there is no such command."""
        handler = self.commands.get(command_id)
        if handler is None:
            self._log.warn("unknown command", {"command": command_id})
            return False
        await handler()
        return True
    
    async def deactivate(self) -> None:
        self._log.info("deactivating")
        await self.session.stop()
    
    async def __aenter__(self) -> "Extension":
        return self
    
    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.deactivate()
