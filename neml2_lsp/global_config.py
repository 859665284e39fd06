"""Global configuration and paths."""

from pathlib import Path
from platformdirs import user_config_dir, user_state_dir


class GlobalPaths:
    """Per-installation paths, shared by every workspace."""
    
    def __init__(self, app_name: str = "neml2-lsp"):
        self.app_name = app_name
        
        self.config = Path(user_config_dir(self.app_name))
        self.state = Path(user_state_dir(self.app_name))
        
        self.global_state = self.state / "global_state.json"


# Global instance
Path = GlobalPaths()
