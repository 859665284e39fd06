"""Shared fixtures: a scripted UI and fake language clients."""

import asyncio
from typing import Any, Callable, Dict, List, Optional

import pytest

from neml2_lsp.config import ConfigModel
from neml2_lsp.discovery.ranker import ItemKind, PickItem
from neml2_lsp.document import Document
from neml2_lsp.state import GlobalState
from neml2_lsp.util.error import LSPError


class FakeUI:
    """Records notices and answers prompts from a script."""
    
    def __init__(self, pick: Optional[Callable[[List[PickItem]], Optional[PickItem]]] = None, dialog: Optional[str] = None):
        self.pick = pick or (lambda items: None)
        self.dialog = dialog
        self.info: List[str] = []
        self.errors: List[str] = []
        self.picks: List[List[PickItem]] = []
        self.dialogs = 0
    
    def show_information_message(self, message: str) -> None:
        self.info.append(message)
    
    def show_error_message(self, message: str) -> None:
        self.errors.append(message)
    
    async def show_quick_pick(self, items: List[PickItem], placeholder: str) -> Optional[PickItem]:
        self.picks.append(items)
        await asyncio.sleep(0)
        return self.pick(items)
    
    async def show_open_dialog(self) -> Optional[str]:
        self.dialogs += 1
        await asyncio.sleep(0)
        return self.dialog


def pick_first(kind: ItemKind) -> Callable[[List[PickItem]], Optional[PickItem]]:
    def pick(items: List[PickItem]) -> Optional[PickItem]:
        for item in items:
            if item.kind == kind:
                return item
        return None
    return pick


class FakeClient:
    """Stands in for LanguageClient and tracks how many are live at once."""
    
    live = 0
    max_live = 0
    created: List["FakeClient"] = []
    failing_paths: set = set()
    
    def __init__(self, path: str):
        self.path = path
        self.started = False
        self.stopped = False
        self.opened: List[str] = []
        self.handlers: Dict[str, Callable[[Any], None]] = {}
        FakeClient.created.append(self)
    
    @classmethod
    def reset(cls) -> None:
        cls.live = 0
        cls.max_live = 0
        cls.created = []
        cls.failing_paths = set()
    
    def on_notification(self, method: str, handler: Callable[[Any], None]) -> None:
        self.handlers[method] = handler
    
    async def start(self) -> None:
        FakeClient.live += 1
        FakeClient.max_live = max(FakeClient.max_live, FakeClient.live)
        self.started = True
        await asyncio.sleep(0)
        if self.path in FakeClient.failing_paths:
            raise LSPError({"command": [self.path]}, "boom")
    
    async def stop(self) -> None:
        if self.stopped:
            return
        self.stopped = True
        if self.started:
            FakeClient.live -= 1
        await asyncio.sleep(0)
    
    async def open_document(self, document: Document) -> None:
        self.opened.append(document.uri)
    
    @property
    def is_live(self) -> bool:
        return self.started and not self.stopped


@pytest.fixture
def fake_clients():
    FakeClient.reset()
    yield FakeClient
    FakeClient.reset()


@pytest.fixture
def config() -> ConfigModel:
    return ConfigModel()


@pytest.fixture
def state(tmp_path) -> GlobalState:
    return GlobalState(tmp_path / "state" / "global_state.json")


@pytest.fixture
def document(tmp_path) -> Document:
    path = tmp_path / "work" / "model.i"
    path.parent.mkdir(parents=True)
    path.write_text("[Models]\n[]\n")
    return Document.from_path(str(path), "neml2")
