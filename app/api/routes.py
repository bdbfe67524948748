"""
HTTP API consumed by the web client.

Every route identifies the user by the opaque ``x-user-id`` header.
Direct CRUD bypasses the classifier; /analyze classifies without executing.
"""
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Header
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app.core.classifier import IntentClassifier
from app.core.dependencies import get_classifier, get_pipeline, get_records
from app.core.pipeline import ActionPipeline
from app.core.records import RecordService
from app.models.entities import (
    EventCreate,
    GoalCreate,
    NoteCreate,
    NoteUpdate,
    TodoCreate,
    TransactionCreate,
)

logger = logging.getLogger(__name__)

router = APIRouter()

SUCCESS = {"success": True}


class MissingUserError(Exception):
    """Request arrived without the x-user-id header."""


async def require_user(x_user_id: Optional[str] = Header(None)) -> str:
    if not x_user_id or not x_user_id.strip():
        raise MissingUserError()
    return x_user_id.strip()


class AnalyzeRequest(BaseModel):
    text: str


class TipRequest(BaseModel):
    summary: str = ""


# --- AI ---


@router.post("/analyze")
async def analyze(
    body: AnalyzeRequest,
    user_id: str = Depends(require_user),
    pipeline: ActionPipeline = Depends(get_pipeline),
):
    try:
        action = await pipeline.analyze(body.text, user_id)
    except Exception:
        logger.exception("API|analyze_failed", extra={"user_id": user_id})
        return JSONResponse(
            status_code=500,
            content={"action": "unknown", "responseMessage": "Ошибка сервера."},
        )
    return action.to_payload()


@router.post("/budget/analyze")
async def analyze_budget(
    body: AnalyzeRequest,
    user_id: str = Depends(require_user),
    classifier: IntentClassifier = Depends(get_classifier),
) -> Dict[str, Any]:
    return await classifier.analyze_budget(body.text) or {}


@router.post("/tips/generate")
async def generate_tip(
    body: TipRequest,
    user_id: str = Depends(require_user),
    classifier: IntentClassifier = Depends(get_classifier),
) -> Dict[str, str]:
    return {"tip": await classifier.generate_tip(body.summary)}


@router.get("/sync")
async def sync(
    user_id: str = Depends(require_user),
    records: RecordService = Depends(get_records),
) -> Dict[str, Any]:
    return records.sync(user_id)


# --- TODOS ---


@router.post("/todos")
async def create_todo(
    body: TodoCreate,
    user_id: str = Depends(require_user),
    records: RecordService = Depends(get_records),
):
    return await records.create(user_id, "todos", body)


@router.patch("/todos/{item_id}")
async def toggle_todo(
    item_id: str,
    user_id: str = Depends(require_user),
    records: RecordService = Depends(get_records),
):
    await records.toggle(user_id, "todos", item_id)
    return SUCCESS


@router.delete("/todos/{item_id}")
async def delete_todo(
    item_id: str,
    user_id: str = Depends(require_user),
    records: RecordService = Depends(get_records),
):
    await records.delete(user_id, "todos", item_id)
    return SUCCESS


# --- TRANSACTIONS ---


@router.post("/transactions")
async def create_transaction(
    body: TransactionCreate,
    user_id: str = Depends(require_user),
    records: RecordService = Depends(get_records),
):
    return await records.create(user_id, "transactions", body)


@router.delete("/transactions/{item_id}")
async def delete_transaction(
    item_id: str,
    user_id: str = Depends(require_user),
    records: RecordService = Depends(get_records),
):
    await records.delete(user_id, "transactions", item_id)
    return SUCCESS


# --- EVENTS ---


@router.post("/events")
async def create_event(
    body: EventCreate,
    user_id: str = Depends(require_user),
    records: RecordService = Depends(get_records),
):
    return await records.create(user_id, "events", body)


@router.delete("/events/{item_id}")
async def delete_event(
    item_id: str,
    user_id: str = Depends(require_user),
    records: RecordService = Depends(get_records),
):
    await records.delete(user_id, "events", item_id)
    return SUCCESS


# --- GOALS ---


@router.post("/goals")
async def create_goal(
    body: GoalCreate,
    user_id: str = Depends(require_user),
    records: RecordService = Depends(get_records),
):
    return await records.create(user_id, "goals", body)


@router.patch("/goals/{item_id}")
async def toggle_goal(
    item_id: str,
    user_id: str = Depends(require_user),
    records: RecordService = Depends(get_records),
):
    await records.toggle(user_id, "goals", item_id)
    return SUCCESS


@router.delete("/goals/{item_id}")
async def delete_goal(
    item_id: str,
    user_id: str = Depends(require_user),
    records: RecordService = Depends(get_records),
):
    await records.delete(user_id, "goals", item_id)
    return SUCCESS


# --- NOTES ---


@router.post("/notes")
async def create_note(
    body: NoteCreate,
    user_id: str = Depends(require_user),
    records: RecordService = Depends(get_records),
):
    return await records.create(user_id, "notes", body)


@router.patch("/notes/{item_id}")
async def update_note(
    item_id: str,
    body: Optional[NoteUpdate] = None,
    user_id: str = Depends(require_user),
    records: RecordService = Depends(get_records),
):
    await records.update_note(user_id, item_id, body.content if body else None)
    return SUCCESS


@router.delete("/notes/{item_id}")
async def delete_note(
    item_id: str,
    user_id: str = Depends(require_user),
    records: RecordService = Depends(get_records),
):
    await records.delete(user_id, "notes", item_id)
    return SUCCESS
