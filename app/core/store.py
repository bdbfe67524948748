"""
Per-user document store.

The whole data set is one document, ``{"users": {user_id: record}}``, read and
written as a unit. Each record holds five entity collections plus settings.

Writers go through ``transaction()``, which holds a single process-wide lock
across load -> mutate -> save. A save overwrites every user's slice, so the
lock covers the whole document rather than one user. Readers call ``load()``
without the lock; saves are atomic renames, so a reader always sees a
complete snapshot.
"""

import asyncio
import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Dict, Optional

logger = logging.getLogger(__name__)

COLLECTIONS = ("todos", "transactions", "events", "notes", "goals")

Document = Dict[str, Any]
UserRecord = Dict[str, Any]


def empty_document() -> Document:
    return {"users": {}}


def new_user_record() -> UserRecord:
    record: UserRecord = {name: [] for name in COLLECTIONS}
    record["settings"] = {"notifications": True}
    return record


class DocumentStore(ABC):
    """Load/save contract shared by every backend."""

    def __init__(self):
        self._write_lock = asyncio.Lock()

    @abstractmethod
    def load(self) -> Document:
        """Return the whole document. Never raises."""

    @abstractmethod
    def save(self, doc: Document) -> bool:
        """Persist the whole document. Returns False when the write failed."""

    def get_or_create_user(self, doc: Document, user_id: Any) -> UserRecord:
        """Return the user's record, inserting an empty one into ``doc`` if absent."""
        users = doc.get("users")
        if not isinstance(users, dict):
            users = doc["users"] = {}

        key = str(user_id)
        record = users.get(key)
        if not isinstance(record, dict):
            record = users[key] = new_user_record()
            logger.debug("STORE|user_created|user=%s", key, extra={"user_id": key})
            return record

        # Records written by older versions may lack a collection
        for name in COLLECTIONS:
            if not isinstance(record.get(name), list):
                record[name] = []
        if not isinstance(record.get("settings"), dict):
            record["settings"] = {"notifications": True}
        return record

    def read_user(self, user_id: Any) -> UserRecord:
        """Snapshot of one user's record; the document is not written."""
        return self.get_or_create_user(self.load(), user_id)

    @asynccontextmanager
    async def transaction(self, user_id: Any) -> AsyncIterator[UserRecord]:
        """
        Serialized read-modify-write of one user's record.

        Usage:
            async with store.transaction(user_id) as user:
                user["todos"].append(todo)

        The document is saved when the block exits normally; an exception
        inside the block discards the changes.
        """
        async with self._write_lock:
            doc = self.load()
            record = self.get_or_create_user(doc, user_id)
            yield record
            self.save(doc)


class JsonFileStore(DocumentStore):
    """Whole document kept in a single JSON file."""

    def __init__(self, path: str):
        super().__init__()
        self.path = Path(path)

    def _ensure_file(self):
        if self.path.exists():
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.save(empty_document())

    def load(self) -> Document:
        try:
            self._ensure_file()
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.error("STORE|load_failed|path=%s|error=%s", self.path, e)
            return empty_document()

        if not isinstance(data, dict) or not isinstance(data.get("users"), dict):
            logger.error("STORE|load_failed|path=%s|error=unexpected_layout", self.path)
            return empty_document()
        return data

    def save(self, doc: Document) -> bool:
        tmp_path: Optional[str] = None
        try:
            payload = json.dumps(doc, ensure_ascii=False, indent=2)
            fd, tmp_path = tempfile.mkstemp(
                dir=str(self.path.parent), prefix=f".{self.path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
            os.replace(tmp_path, self.path)
            return True
        except (OSError, TypeError, ValueError) as e:
            logger.error("STORE|save_failed|path=%s|error=%s", self.path, e)
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            return False
