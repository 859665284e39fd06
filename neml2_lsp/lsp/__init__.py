"""Language Server Protocol connection."""

from .client import LanguageClient
from .language import DocumentFilter, document_selector, matches

__all__ = [
    "LanguageClient",
    "DocumentFilter",
    "document_selector",
    "matches",
]
