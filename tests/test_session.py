"""Tests for the session manager driving fake connections."""

import asyncio
from datetime import datetime

import pytest

from neml2_lsp.bus import EventBus
from neml2_lsp.discovery.choice import OPTED_OUT, UNDECIDED
from neml2_lsp.discovery.prober import Candidate
from neml2_lsp.discovery.ranker import ItemKind
from neml2_lsp.discovery.recent import RecentChoices
from neml2_lsp.discovery.selector import Selector
from neml2_lsp.document import Document
from neml2_lsp.session.manager import SessionManager
from neml2_lsp.session.state import START_FAILED_MESSAGE, SessionStatus

from .conftest import FakeClient, FakeUI, pick_first


def make_manager(config, state, ui, environ=None, candidates=(), bus=None):
    async def prober(document, binary_name):
        return [Candidate(path=p, last_modified=datetime(2024, 1, 1)) for p in candidates]
    
    recent = RecentChoices(state, config.recent_choices_key)
    selector = Selector(config, ui, recent, environ=environ or {}, prober=prober)
    return SessionManager(selector, ui, config, client_factory=FakeClient, bus=bus)


@pytest.mark.asyncio
async def test_restart_starts_running_connection(config, state, document, fake_clients):
    manager = make_manager(config, state, FakeUI(), environ={"NEML2_LANGUAGE_SERVER": "/opt/srv"})
    
    await manager.restart(document)
    
    assert manager.status == SessionStatus.RUNNING
    assert manager.connection.path == "/opt/srv"
    assert manager.connection.opened == [document.uri]
    assert "neml2/debug" in manager.connection.handlers


@pytest.mark.asyncio
async def test_undecided_or_opted_out_stays_stopped(config, state, document, fake_clients):
    ui = FakeUI(pick=lambda items: None)
    manager = make_manager(config, state, ui, candidates=["/a/langserv"])
    
    await manager.restart(document)
    assert manager.status == SessionStatus.STOPPED
    assert manager.selector.choice == UNDECIDED
    
    manager.selector.reset(OPTED_OUT)
    await manager.restart(document)
    assert manager.status == SessionStatus.STOPPED
    assert fake_clients.created == []


@pytest.mark.asyncio
async def test_start_failure_opts_out_and_discards(config, state, document, fake_clients):
    ui = FakeUI()
    fake_clients.failing_paths.add("/bad/langserv")
    manager = make_manager(config, state, ui, environ={"NEML2_LANGUAGE_SERVER": "/bad/langserv"})
    
    await manager.restart(document)
    
    assert manager.status == SessionStatus.FAILED
    assert ui.errors == [START_FAILED_MESSAGE]
    assert manager.connection is None
    assert fake_clients.live == 0
    assert manager.selector.choice == OPTED_OUT


@pytest.mark.asyncio
async def test_failed_session_retried_only_by_manual_restart(config, state, document, fake_clients):
    ui = FakeUI(pick=pick_first(ItemKind.CANDIDATE))
    fake_clients.failing_paths.add("/a/langserv")
    manager = make_manager(config, state, ui, candidates=["/a/langserv"])
    
    await manager.restart(document)
    assert manager.status == SessionStatus.FAILED
    
    await manager.focus_changed(Document(uri=document.uri + ".2", language_id="neml2"))
    assert manager.status == SessionStatus.STOPPED
    assert ui.info == ["NEML2 Language Server disabled."]
    
    fake_clients.failing_paths.clear()
    await manager.restart(reset_choice=True)
    assert manager.status == SessionStatus.RUNNING
    assert len(ui.picks) == 2


@pytest.mark.asyncio
async def test_double_restart_yields_one_connection(config, state, document, fake_clients):
    manager = make_manager(config, state, FakeUI(), environ={"NEML2_LANGUAGE_SERVER": "/opt/srv"})
    
    await asyncio.gather(manager.restart(document), manager.restart(document))
    
    live = [c for c in fake_clients.created if c.is_live]
    assert len(live) == 1
    assert manager.connection is live[0]
    assert manager.status == SessionStatus.RUNNING
    assert fake_clients.max_live == 1


@pytest.mark.asyncio
async def test_restart_while_picking_supersedes_first(config, state, document, fake_clients):
    """A second restart during the first one's picker wins; the first pick is dropped."""
    picks = iter(["/first/langserv", "/second/langserv"])
    
    def pick(items):
        path = next(picks)
        return next(i for i in items if i.path == path)
    
    ui = FakeUI(pick=pick)
    manager = make_manager(config, state, ui, candidates=["/first/langserv", "/second/langserv"])
    
    await asyncio.gather(manager.restart(document), manager.restart(document))
    
    assert [c.path for c in fake_clients.created] == ["/second/langserv"]
    assert manager.status == SessionStatus.RUNNING


@pytest.mark.asyncio
async def test_manual_restart_while_running_replaces_connection(config, state, document, fake_clients):
    manager = make_manager(config, state, FakeUI(), environ={"NEML2_LANGUAGE_SERVER": "/opt/srv"})
    await manager.restart(document)
    first = manager.connection
    
    await manager.restart(reset_choice=True)
    
    assert first.stopped
    assert manager.connection is not first
    assert manager.connection.is_live
    assert manager.bound_document == document
    assert fake_clients.max_live == 1


@pytest.mark.asyncio
async def test_stop_disposes_connection(config, state, document, fake_clients):
    manager = make_manager(config, state, FakeUI(), environ={"NEML2_LANGUAGE_SERVER": "/opt/srv"})
    await manager.restart(document)
    client = manager.connection
    
    await manager.stop()
    
    assert manager.status == SessionStatus.STOPPED
    assert client.stopped
    assert fake_clients.live == 0


@pytest.mark.asyncio
async def test_stop_during_start_leaves_nothing_running(config, state, document, fake_clients):
    manager = make_manager(config, state, FakeUI(), environ={"NEML2_LANGUAGE_SERVER": "/opt/srv"})
    
    await asyncio.gather(manager.restart(document), manager.stop())
    
    assert manager.status == SessionStatus.STOPPED
    assert fake_clients.live == 0


@pytest.mark.asyncio
async def test_focus_change_while_running_does_not_restart(config, state, document, fake_clients):
    manager = make_manager(config, state, FakeUI(), environ={"NEML2_LANGUAGE_SERVER": "/opt/srv"})
    await manager.restart(document)
    other = Document(uri=document.uri.replace("model.i", "other.i"), language_id="neml2")
    
    await manager.focus_changed(other)
    
    assert len(fake_clients.created) == 1
    assert manager.bound_document == other
    assert manager.connection.opened == [document.uri, other.uri]


@pytest.mark.asyncio
async def test_focus_change_to_other_language_is_ignored(config, state, document, fake_clients):
    manager = make_manager(config, state, FakeUI(), environ={"NEML2_LANGUAGE_SERVER": "/opt/srv"})
    
    await manager.focus_changed(Document(uri="file:///notes.txt", language_id="plaintext"))
    
    assert manager.status == SessionStatus.STOPPED
    assert manager.bound_document is None


@pytest.mark.asyncio
async def test_status_events_published(config, state, document, fake_clients):
    bus = EventBus()
    seen = []
    bus.subscribe("session.status", lambda event: seen.append(event.properties["status"]))
    manager = make_manager(config, state, FakeUI(), environ={"NEML2_LANGUAGE_SERVER": "/opt/srv"}, bus=bus)
    
    await manager.restart(document)
    await manager.stop()
    
    assert seen == ["starting", "running", "stopped"]


@pytest.mark.asyncio
async def test_never_two_live_connections(config, state, document, fake_clients):
    manager = make_manager(config, state, FakeUI(), environ={"NEML2_LANGUAGE_SERVER": "/opt/srv"})
    
    await asyncio.gather(
        manager.restart(document),
        manager.restart(reset_choice=True),
        manager.stop(),
        manager.restart(document),
        manager.restart(reset_choice=True),
    )
    
    assert fake_clients.max_live <= 1
    assert len([c for c in fake_clients.created if c.is_live]) == 1
    assert manager.status == SessionStatus.RUNNING


class GatedPickUI(FakeUI):
    """Holds the first picker open until ``release`` is set."""
    
    def __init__(self, first: str, later: str):
        super().__init__()
        self.first = first
        self.later = later
        self.release = asyncio.Event()
    
    async def show_quick_pick(self, items, placeholder):
        self.picks.append(items)
        if len(self.picks) == 1:
            await self.release.wait()
            path = self.first
        else:
            path = self.later
        return next(i for i in items if i.path == path)


@pytest.mark.asyncio
async def test_superseded_pick_does_not_overwrite_choice(config, state, document, fake_clients):
    """A pick returning after a newer restart neither caches nor records its path."""
    ui = GatedPickUI("/first/langserv", "/second/langserv")
    manager = make_manager(config, state, ui, candidates=["/first/langserv", "/second/langserv"])
    
    first = asyncio.ensure_future(manager.restart(document))
    while not ui.picks:
        await asyncio.sleep(0)
    
    await manager.restart(reset_choice=True)
    assert manager.connection.path == "/second/langserv"
    
    ui.release.set()
    await first
    
    assert manager.selector.choice.path == "/second/langserv"
    assert manager.selector.recent.list() == ["/second/langserv"]
    assert manager.connection.path == "/second/langserv"
    assert [c.path for c in fake_clients.created] == ["/second/langserv"]
    
    await manager.stop()
    await manager.focus_changed(Document(uri=document.uri.replace("model.i", "other.i"), language_id="neml2"))
    
    assert manager.status == SessionStatus.RUNNING
    assert manager.connection.path == "/second/langserv"
    assert len(ui.picks) == 2


class RecordingLog:
    def __init__(self):
        self.records = []
    
    def _record(self, level):
        return lambda message=None, extra=None: self.records.append((level, message))
    
    def __getattr__(self, name):
        if name in ("debug", "info", "warn", "error"):
            return self._record(name)
        raise AttributeError(name)


@pytest.mark.asyncio
async def test_superseded_start_failure_is_not_an_error(config, state, document, fake_clients, monkeypatch):
    log = RecordingLog()
    monkeypatch.setattr(SessionManager, "_log", log)
    ui = FakeUI()
    fake_clients.failing_paths.add("/bad/langserv")
    manager = make_manager(config, state, ui, environ={"NEML2_LANGUAGE_SERVER": "/bad/langserv"})
    
    await asyncio.gather(manager.restart(document), manager.stop())
    
    assert manager.status == SessionStatus.STOPPED
    assert ui.errors == []
    assert ("error", "Failed to start language server") not in log.records
    assert ("debug", "superseded start failed") in log.records


@pytest.mark.asyncio
async def test_current_start_failure_is_logged_as_error(config, state, document, fake_clients, monkeypatch):
    log = RecordingLog()
    monkeypatch.setattr(SessionManager, "_log", log)
    fake_clients.failing_paths.add("/bad/langserv")
    manager = make_manager(config, state, FakeUI(), environ={"NEML2_LANGUAGE_SERVER": "/bad/langserv"})
    
    await manager.restart(document)
    
    assert ("error", "Failed to start language server") in log.records
