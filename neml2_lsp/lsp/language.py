"""Document selectors: which documents a language client serves."""

from typing import List, Sequence

from pydantic import BaseModel, ConfigDict

from ..config import ConfigModel
from ..document import Document


class DocumentFilter(BaseModel):
    """Matches documents of one language under one scheme."""
    
    model_config = ConfigDict(frozen=True)
    
    language: str
    scheme: str
    
    def matches(self, document: Document) -> bool:
        return document.language_id == self.language and document.scheme == self.scheme


def document_selector(config: ConfigModel) -> List[DocumentFilter]:
    """The configured language under every configured scheme."""
    return [DocumentFilter(language=config.language_id, scheme=scheme) for scheme in config.schemes]


def matches(selector: Sequence[DocumentFilter], document: Document) -> bool:
    return any(f.matches(document) for f in selector)
