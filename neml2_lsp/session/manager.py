"""Owns the single client/server connection."""

import asyncio
from typing import Any, Callable, Dict, Optional, Set

from ..bus import EventBus
from ..config import ConfigModel
from ..discovery.selector import Selector
from ..document import Document
from ..lsp.client import LanguageClient
from ..lsp.language import document_selector, matches
from ..ui.base import UI
from ..util.error import LSPError
from ..util.log import Log
from .state import (
    DiscardConnection,
    FocusChanged,
    OpenDocument,
    Resolved,
    ResolveChoice,
    ResetChoice,
    Restart,
    SessionEffect,
    SessionEvent,
    SessionSnapshot,
    SessionStatus,
    ShowError,
    StartConnection,
    Started,
    StartFailed,
    Stop,
    StopConnection,
    transition,
)

ClientFactory = Callable[[str], LanguageClient]


class SessionManager:
    """Drives the session state machine and carries out its effects.

    At most one connection exists at any time: every connection is
    registered under the generation that created it, and all of them are
    stopped and awaited before the next one is constructed.
    """
    
    _log = Log.create({"service": "session"})
    
    def __init__(
        self,
        selector: Selector,
        ui: UI,
        config: ConfigModel,
        client_factory: Optional[ClientFactory] = None,
        bus: Optional[EventBus] = None,
    ):
        self.selector = selector
        self.ui = ui
        self.config = config
        self.document_selector = document_selector(config)
        self.client_factory = client_factory or self._create_client
        self.bus = bus or EventBus()
        self.snapshot = SessionSnapshot()
        self._connections: Dict[int, LanguageClient] = {}
        self._disposals: Set[asyncio.Future] = set()
    
    @property
    def status(self) -> SessionStatus:
        return self.snapshot.status
    
    @property
    def connection(self) -> Optional[LanguageClient]:
        """The connection of the current generation, if any."""
        return self._connections.get(self.snapshot.generation)
    
    @property
    def bound_document(self) -> Optional[Document]:
        return self.snapshot.bound_document
    
    async def restart(self, document: Optional[Document] = None, reset_choice: bool = False) -> None:
        await self.dispatch(Restart(document=document, reset_choice=reset_choice))
    
    async def stop(self) -> None:
        await self.dispatch(Stop())
    
    async def focus_changed(self, document: Document) -> None:
        await self.dispatch(FocusChanged(document=document, matches=matches(self.document_selector, document)))
    
    async def dispatch(self, event: SessionEvent) -> None:
        previous = self.snapshot
        self.snapshot, effects = transition(previous, event)
        
        self._log.debug("transition", {
            "event": type(event).__name__,
            "status": self.snapshot.status.value,
            "generation": self.snapshot.generation,
        })
        if self.snapshot.status != previous.status:
            self._log.info("status", {"from": previous.status.value, "to": self.snapshot.status.value})
            self.bus.publish("session.status", {
                "status": self.snapshot.status.value,
                "generation": self.snapshot.generation,
            })
        
        for effect in effects:
            await self._apply(effect)
    
    async def _apply(self, effect: SessionEffect) -> None:
        if isinstance(effect, StopConnection):
            await self._stop_all()
        elif isinstance(effect, ResetChoice):
            self.selector.reset(effect.choice)
        elif isinstance(effect, ResolveChoice):
            await self._resolve(effect.generation, effect.document)
        elif isinstance(effect, StartConnection):
            await self._start_connection(effect.generation, effect.path)
        elif isinstance(effect, DiscardConnection):
            client = self._connections.pop(effect.generation, None)
            if client is not None:
                self._schedule_disposal(client)
                await self._drain()
        elif isinstance(effect, ShowError):
            self.ui.show_error_message(effect.message)
        elif isinstance(effect, OpenDocument):
            client = self.connection
            if client is not None:
                await client.open_document(effect.document)
        else:
            raise TypeError(f"Unknown session effect: {effect!r}")
    
    async def _resolve(self, generation: int, document: Optional[Document]) -> None:
        # superseded while stopping the previous connection
        if generation != self.snapshot.generation:
            return
        choice = await self.selector.choose(document)
        if generation != self.snapshot.generation:
            self._log.debug("dropping superseded choice", {"generation": generation, "choice": str(choice)})
            return
        self.selector.commit(choice)
        await self.dispatch(Resolved(generation=generation, choice=choice))
    
    async def _start_connection(self, generation: int, path: str) -> None:
        while self._connections or self._disposals:
            await self._stop_all()
        if generation != self.snapshot.generation:
            return
        
        client = self.client_factory(path)
        client.on_notification(self.config.debug_notification, self._handle_debug)
        self._connections[generation] = client
        
        try:
            await client.start()
        except LSPError as e:
            if generation == self.snapshot.generation:
                self._log.error("Failed to start language server", {"path": path, "error": e.message})
            else:
                self._log.debug("superseded start failed", {"path": path, "error": e.message})
            await self.dispatch(StartFailed(generation=generation, error=e.message))
        else:
            await self.dispatch(Started(generation=generation))
    
    async def _stop_all(self) -> None:
        for generation in list(self._connections):
            self._schedule_disposal(self._connections.pop(generation))
        await self._drain()
    
    def _schedule_disposal(self, client: LanguageClient) -> None:
        disposal = asyncio.ensure_future(client.stop())
        self._disposals.add(disposal)
        disposal.add_done_callback(self._disposals.discard)
    
    async def _drain(self) -> None:
        while self._disposals:
            results = await asyncio.gather(*list(self._disposals), return_exceptions=True)
            for result in results:
                if isinstance(result, Exception):
                    self._log.error("Failed to stop language server", {"error": repr(result)})
    
    def _create_client(self, path: str) -> LanguageClient:
        return LanguageClient(
            client_id=self.config.client_id,
            name=self.config.client_name,
            command=[path],
            document_selector=self.document_selector,
            start_timeout=self.config.start_timeout,
            stop_timeout=self.config.stop_timeout,
        )
    
    def _handle_debug(self, params: Any) -> None:
        self._log.info("debug", {"message": params})
