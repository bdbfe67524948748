"""
Entity operations on a user's record.

Both the direct CRUD endpoints and the action dispatcher create entities
through this module, so ids, timestamps and defaults are assigned in one place.
"""
import logging
import secrets
from typing import Any, Dict, Iterable, Optional

from pydantic import BaseModel

from app.core.store import DocumentStore, UserRecord
from app.models.entities import (
    Event,
    EventCreate,
    Goal,
    GoalCreate,
    Note,
    NoteCreate,
    Todo,
    TodoCreate,
    Transaction,
    TransactionCreate,
)

logger = logging.getLogger(__name__)

ID_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"
ID_LENGTH = 9

# Fields the server assigns on creation; client-supplied values are dropped
SERVER_FIELDS = ("id", "createdAt", "created_at", "completed")

ENTITY_TYPES = {
    "todos": (TodoCreate, Todo),
    "transactions": (TransactionCreate, Transaction),
    "events": (EventCreate, Event),
    "notes": (NoteCreate, Note),
    "goals": (GoalCreate, Goal),
}


def new_id(existing: Iterable[str] = ()) -> str:
    """Random base-36 id that does not collide with ``existing``."""
    taken = set(existing)
    while True:
        candidate = "".join(secrets.choice(ID_ALPHABET) for _ in range(ID_LENGTH))
        if candidate not in taken:
            return candidate


def build_entity(collection: str, payload: BaseModel, items: list) -> Dict[str, Any]:
    """Turn a creation payload into a stored entity for ``collection``."""
    _, entity_type = ENTITY_TYPES[collection]
    fields = payload.model_dump(mode="json", by_alias=True, exclude_none=True)
    for name in SERVER_FIELDS:
        fields.pop(name, None)

    entity_id = new_id(item.get("id") for item in items if isinstance(item, dict))
    return entity_type(id=entity_id, **fields).to_document()


def _find(items: list, item_id: str) -> Optional[dict]:
    for item in items:
        if isinstance(item, dict) and item.get("id") == item_id:
            return item
    return None


class RecordService:
    """Create / toggle / update / delete entities through the store."""

    def __init__(self, store: DocumentStore):
        self.store = store

    def sync(self, user_id: str) -> UserRecord:
        return self.store.read_user(user_id)

    async def create(self, user_id: str, collection: str, payload: BaseModel) -> Dict[str, Any]:
        async with self.store.transaction(user_id) as user:
            items = user[collection]
            entity = build_entity(collection, payload, items)
            items.append(entity)

        logger.info(
            "RECORDS|created|collection=%s|id=%s",
            collection,
            entity["id"],
            extra={"user_id": user_id, "collection": collection},
        )
        return entity

    async def toggle(self, user_id: str, collection: str, item_id: str) -> bool:
        """Flip ``completed``; returns False when the id does not exist."""
        async with self.store.transaction(user_id) as user:
            item = _find(user[collection], item_id)
            if item is not None:
                item["completed"] = not item.get("completed", False)

        return item is not None

    async def delete(self, user_id: str, collection: str, item_id: str) -> bool:
        """Hard-remove an entity; a missing id is not an error."""
        async with self.store.transaction(user_id) as user:
            before = len(user[collection])
            user[collection] = [
                item
                for item in user[collection]
                if not (isinstance(item, dict) and item.get("id") == item_id)
            ]
            removed = before - len(user[collection])

        logger.info(
            "RECORDS|deleted|collection=%s|id=%s|removed=%d",
            collection,
            item_id,
            removed,
            extra={"user_id": user_id, "collection": collection},
        )
        return removed > 0

    async def update_note(self, user_id: str, note_id: str, content: Optional[str]) -> bool:
        """Replace a note's content; empty content leaves the note unchanged."""
        if not content:
            return False

        async with self.store.transaction(user_id) as user:
            note = _find(user["notes"], note_id)
            if note is not None:
                note["content"] = content

        return note is not None
