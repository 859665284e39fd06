"""Decide which language server executable to run."""

import os
from typing import Awaitable, Callable, List, Mapping, Optional

from ..config import ConfigModel
from ..document import Document
from ..ui.base import UI
from ..util.error import StateError
from ..util.log import Log
from .choice import OPTED_OUT, UNDECIDED, ServerChoice
from .prober import Candidate, probe_candidates
from .ranker import ItemKind, build_pick_items
from .recent import RecentChoices

Prober = Callable[[Document, str], Awaitable[List[Candidate]]]

PICK_PLACEHOLDER = "NEML2 language server"
NOT_FOUND_MESSAGE = "No NEML2 language server found in the current directory or any of the parent directories."


class Selector:
    """Resolves the server path and owns the cached ``ServerChoice``.

    Precedence: environment override, cached opt-out, interactive pick
    when undecided, otherwise the cached path.
    """
    
    _log = Log.create({"service": "discovery.selector"})
    
    def __init__(
        self,
        config: ConfigModel,
        ui: UI,
        recent: RecentChoices,
        environ: Optional[Mapping[str, str]] = None,
        prober: Prober = probe_candidates,
    ):
        self.config = config
        self.ui = ui
        self.recent = recent
        self.environ = os.environ if environ is None else environ
        self.prober = prober
        self.choice: ServerChoice = UNDECIDED
    
    def reset(self, choice: ServerChoice = UNDECIDED) -> None:
        self._log.info("choice reset", {"choice": str(choice)})
        self.choice = choice
    
    async def resolve(self, document: Optional[Document]) -> ServerChoice:
        """Resolve the server for ``document`` and commit the outcome."""
        return self.commit(await self.choose(document))
    
    async def choose(self, document: Optional[Document]) -> ServerChoice:
        """Resolve the server for ``document`` without touching the cache.
        
        The caller decides whether the outcome is still wanted once the
        picker returns and passes it to ``commit``.
        """
        return await self._resolve(document)
    
    def commit(self, choice: ServerChoice) -> ServerChoice:
        """Cache ``choice`` and record a definite path as a recent choice."""
        self.choice = choice
        
        if choice.is_path and choice.path:
            try:
                self.recent.record(choice.path)
            except StateError as e:
                self._log.warn("could not record recent choice", {"path": choice.path, "error": e.message})
        
        self._log.info("resolved", {"choice": str(choice)})
        return choice
    
    async def _resolve(self, document: Optional[Document]) -> ServerChoice:
        if document is None:
            return UNDECIDED
        
        if self.config.env_var in self.environ:
            return ServerChoice.of(self.environ[self.config.env_var])
        
        if self.choice.is_opted_out:
            self.ui.show_information_message(f"{self.config.client_name} disabled.")
            return OPTED_OUT
        
        if self.choice.is_path:
            return self.choice
        
        return await self._pick(document)
    
    async def _pick(self, document: Document) -> ServerChoice:
        candidates = await self.prober(document, self.config.binary_name)
        recent = self.recent.list()
        
        if not candidates and not recent:
            self.ui.show_information_message(NOT_FOUND_MESSAGE)
            return OPTED_OUT
        
        items = build_pick_items(candidates, recent)
        picked = await self.ui.show_quick_pick(items, PICK_PLACEHOLDER)
        
        if picked is None or not picked.selectable:
            return UNDECIDED
        
        if picked.kind == ItemKind.BROWSE:
            selection = await self.ui.show_open_dialog()
            return ServerChoice.of(selection) if selection else UNDECIDED
        
        return ServerChoice.of(picked.path or picked.label)
