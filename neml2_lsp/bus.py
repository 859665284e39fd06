"""Event bus for inter-component communication."""

from typing import Any, Callable, Dict, List

from pydantic import BaseModel

from .util.log import Log


class Event(BaseModel):
    """Base event class."""
    
    type: str
    properties: Dict[str, Any]


class EventBus:
    """Simple event bus for pub/sub communication."""
    
    _log = Log.create({"service": "bus"})
    
    def __init__(self):
        self._subscribers: Dict[str, List[Callable[[Event], None]]] = {}
    
    def subscribe(self, event_type: str, handler: Callable[[Event], None]) -> Callable[[], None]:
        """Subscribe to an event type. Returns unsubscribe function."""
        if event_type not in self._subscribers:
            self._subscribers[event_type] = []
        
        self._subscribers[event_type].append(handler)
        
        def unsubscribe():
            handlers = self._subscribers.get(event_type, [])
            if handler in handlers:
                handlers.remove(handler)
        
        return unsubscribe
    
    def publish(self, event_type: str, properties: Dict[str, Any]) -> None:
        """Publish an event synchronously."""
        event = Event(type=event_type, properties=properties)
        
        for handler in list(self._subscribers.get(event_type, [])):
            try:
                handler(event)
            except Exception as e:
                self._log.error("Event handler failed", {"type": event_type, "error": str(e)})
