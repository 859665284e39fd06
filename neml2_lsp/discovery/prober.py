"""Search the ancestors of a document for language server executables."""

import asyncio
from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict

from ..document import Document
from ..util.filesystem import Filesystem
from ..util.log import Log

_log = Log.create({"service": "discovery.prober"})


class Candidate(BaseModel):
    """An executable that looks like a language server."""
    
    model_config = ConfigDict(frozen=True)
    
    path: str
    last_modified: datetime


def _probe(start_path: str, binary_name: str) -> List[Candidate]:
    candidates = []
    for path in Filesystem.find_all_up(binary_name, start_path):
        modified = Filesystem.modified_time(path)
        if modified is None:
            continue
        candidates.append(Candidate(path=path, last_modified=modified))
    return candidates


async def probe_candidates(document: Document, binary_name: str) -> List[Candidate]:
    """Find every executable ``binary_name`` above the document's location.

    Untitled documents are looked up as if they were saved at the path they
    carry. Finding nothing is a normal outcome and returns an empty list.
    """
    start_path = document.as_file().fs_path
    if not start_path:
        _log.warn("document has no filesystem location", {"uri": document.uri})
        return []
    
    with _log.time("probe", {"start": start_path}):
        candidates = await asyncio.to_thread(_probe, start_path, binary_name)
    
    _log.info("probed for language servers", {"start": start_path, "found": len(candidates)})
    return candidates
