"""Editor documents as seen by the client."""

from pathlib import Path
from typing import Optional
from urllib.parse import quote, urlparse
from urllib.request import url2pathname

from pydantic import BaseModel, ConfigDict


class Document(BaseModel):
    """An open document.

    ``uri`` identifies the document. Saved files use the ``file`` scheme,
    unsaved buffers the ``untitled`` scheme.
    """

    model_config = ConfigDict(frozen=True)

    uri: str
    language_id: str
    text: Optional[str] = None

    @classmethod
    def from_path(cls, path: str, language_id: str, untitled: bool = False) -> "Document":
        """Create a document for a filesystem path."""
        absolute = Path(path).expanduser().absolute()
        if untitled:
            return cls(uri="untitled:" + quote(str(absolute)), language_id=language_id)
        return cls(uri=absolute.as_uri(), language_id=language_id)

    @property
    def scheme(self) -> str:
        return urlparse(self.uri).scheme

    def as_file(self) -> "Document":
        """Return this document under the ``file`` scheme.

        Untitled buffers have no backing file; dropping their scheme keeps
        whatever path they carry so the parent directories can still be
        searched.
        """
        parsed = urlparse(self.uri)
        if parsed.scheme == "file":
            return self
        path = parsed.path if parsed.path.startswith("/") else "/" + parsed.path
        return self.model_copy(update={"uri": f"file://{path}"})

    @property
    def fs_path(self) -> Optional[str]:
        """Filesystem path of a ``file`` document, None for other schemes."""
        parsed = urlparse(self.uri)
        if parsed.scheme != "file":
            return None
        return url2pathname(parsed.path)
