"""Tests for the event bus."""

from neml2_lsp.bus import EventBus


def test_bus_isolates_failing_handlers():
    bus = EventBus()
    seen = []
    
    def broken(event):
        raise RuntimeError("nope")
    
    bus.subscribe("x", broken)
    unsubscribe = bus.subscribe("x", lambda event: seen.append(event.properties))
    bus.publish("x", {"n": 1})
    unsubscribe()
    bus.publish("x", {"n": 2})
    
    assert seen == [{"n": 1}]
