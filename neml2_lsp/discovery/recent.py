"""Most-recently-used record of manually chosen servers."""

from typing import List

from ..state import GlobalState
from ..util.log import Log

MAX_RECENT_CHOICES = 5


class RecentChoices:
    """Bounded, deduplicated, most-recent-first list of server paths."""
    
    _log = Log.create({"service": "discovery.recent"})
    
    def __init__(self, state: GlobalState, key: str, max_entries: int = MAX_RECENT_CHOICES):
        self.state = state
        self.key = key
        self.max_entries = max_entries
    
    def list(self) -> List[str]:
        stored = self.state.get(self.key) or []
        return [path for path in stored if isinstance(path, str)]
    
    def record(self, path: str) -> List[str]:
        """Move ``path`` to the front and drop the oldest entries past the limit."""
        choices = [path] + [choice for choice in self.list() if choice != path]
        choices = choices[:self.max_entries]
        self.state.update(self.key, choices)
        self._log.debug("recorded choice", {"path": path, "count": len(choices)})
        return choices
    
    def clear(self) -> None:
        self.state.update(self.key, [])
