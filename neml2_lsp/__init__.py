"""NEML2 language server client - find, launch and keep one language server."""

__version__ = "0.1.0"
__description__ = "Language server discovery and session management for NEML2 input files"

from .app import Extension
from .config import Config, ConfigModel
from .document import Document

__all__ = ["Extension", "Config", "ConfigModel", "Document"]
