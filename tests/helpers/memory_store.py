"""
Process-local document store for tests that need no file system.
"""
import copy
from typing import Optional

from app.core.store import Document, DocumentStore, empty_document


class InMemoryStore(DocumentStore):
    """Each load returns an independent copy, like a fresh read of the file."""

    def __init__(self, initial: Optional[Document] = None):
        super().__init__()
        self._doc = copy.deepcopy(initial) if initial else empty_document()

    def load(self) -> Document:
        return copy.deepcopy(self._doc)

    def save(self, doc: Document) -> bool:
        self._doc = copy.deepcopy(doc)
        return True
