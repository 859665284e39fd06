"""Durable key-value state shared by every workspace of an installation."""

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

from .global_config import Path as GlobalPath
from .util.error import StateError
from .util.log import Log


class GlobalState:
    """JSON file backed key-value store.

    Values must be JSON serializable. Every ``update`` rewrites the whole
    file through a temporary file so a crash never leaves it truncated.
    """
    
    _log = Log.create({"service": "state"})
    
    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else GlobalPath.global_state
    
    def _read(self) -> Dict[str, Any]:
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, json.JSONDecodeError) as e:
            self._log.warn("Ignoring unreadable state file", {"path": str(self.path), "error": str(e)})
            return {}
        return data if isinstance(data, dict) else {}
    
    def get(self, key: str, default: Any = None) -> Any:
        """Get the stored value for ``key``."""
        return self._read().get(key, default)
    
    def update(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key``.

        Raises:
            StateError: the state file cannot be written
        """
        data = self._read()
        data[key] = value
        
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, self.path)
        except OSError as e:
            self._log.error("Failed to write state", {"path": str(self.path), "key": key, "error": str(e)})
            raise StateError({"path": str(self.path), "key": key}, "Failed to write state", e) from e
        
        self._log.debug("state updated", {"key": key})
