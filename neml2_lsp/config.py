"""Configuration management."""

import json
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError

from .global_config import Path as GlobalPath
from .util.error import ConfigError
from .util.log import Log, LogLevel


class ConfigModel(BaseModel):
    """Configuration model.

    The defaults describe the NEML2 language server; every value can be
    overridden from ``config.json``.
    """
    
    log_level: Optional[LogLevel] = None
    
    # discovery
    env_var: str = "NEML2_LANGUAGE_SERVER"
    binary_name: str = "langserv"
    max_recent_choices: int = Field(5, ge=1)
    recent_choices_key: str = "neml2_language_server_recent_choices"
    
    # connection
    client_id: str = "language-server-neml2"
    client_name: str = "NEML2 Language Server"
    language_id: str = "neml2"
    schemes: List[str] = Field(default_factory=lambda: ["file", "untitled"])
    debug_notification: str = "neml2/debug"
    start_timeout: float = Field(10.0, gt=0)
    stop_timeout: float = Field(5.0, gt=0)
    
    class Config:
        use_enum_values = True


class Config:
    """Configuration manager."""
    
    _log = Log.create({"service": "config"})
    _config_path: Path = GlobalPath.config / "config.json"
    _cached_config: Optional[ConfigModel] = None
    
    @classmethod
    def path(cls) -> Path:
        return cls._config_path
    
    @classmethod
    def get(cls) -> ConfigModel:
        """Get current configuration.

        Raises:
            ConfigError: the config file exists but is not valid
        """
        if cls._cached_config is not None:
            return cls._cached_config
        
        if not cls._config_path.exists():
            cls._cached_config = ConfigModel()
            return cls._cached_config
        
        try:
            with open(cls._config_path, 'r') as f:
                data = json.load(f)
            cls._cached_config = ConfigModel(**data)
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            cls._log.error("Failed to load config", {"path": str(cls._config_path), "error": str(e)})
            raise ConfigError({"path": str(cls._config_path)}, f"Invalid configuration file: {e}", e) from e
        
        return cls._cached_config
    
    @classmethod
    def save(cls, config: ConfigModel) -> None:
        """Save configuration."""
        try:
            cls._config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(cls._config_path, 'w') as f:
                json.dump(config.model_dump(exclude_none=True), f, indent=2)
            cls._cached_config = config
            cls._log.info("Configuration saved")
        except OSError as e:
            cls._log.error("Failed to save config", {"error": str(e)})
            raise ConfigError({"path": str(cls._config_path)}, "Failed to save configuration", e) from e
    
    @classmethod
    def use(cls, path: Path) -> None:
        """Point the manager at another config file and drop the cache."""
        cls._config_path = path
        cls._cached_config = None
    
    @classmethod
    def clear_cache(cls) -> None:
        """Clear cached configuration."""
        cls._cached_config = None
