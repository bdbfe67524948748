# app/core/dependencies.py

"""
Centralized dependency management for the application.

This module holds global instances of services that are created once and
shared across requests. FastAPI routes reach them through the ``get_*``
functions; tests rebuild the graph around doubles with ``init_services``.
"""

from typing import Optional

from app import config
from app.core.classifier import IntentClassifier
from app.core.delivery import TelegramSender
from app.core.dispatcher import ActionDispatcher
from app.core.pipeline import ActionPipeline
from app.core.records import RecordService
from app.core.store import DocumentStore, JsonFileStore

# Global instances, created lazily on first use
store: Optional[DocumentStore] = None
records: Optional[RecordService] = None
classifier: Optional[IntentClassifier] = None
pipeline: Optional[ActionPipeline] = None
sender: Optional[TelegramSender] = None


def init_services(
    document_store: Optional[DocumentStore] = None,
    intent_classifier: Optional[IntentClassifier] = None,
    telegram_sender: Optional[TelegramSender] = None,
) -> None:
    """(Re)build the service graph, optionally around given components."""
    global store, records, classifier, pipeline, sender

    store = document_store or JsonFileStore(config.DB_FILE)
    records = RecordService(store)
    classifier = intent_classifier or IntentClassifier()
    pipeline = ActionPipeline(store, classifier, ActionDispatcher(records))
    sender = telegram_sender or TelegramSender()


def _ensure_services() -> None:
    if pipeline is None:
        init_services()


def get_records() -> RecordService:
    _ensure_services()
    return records


def get_classifier() -> IntentClassifier:
    _ensure_services()
    return classifier


def get_pipeline() -> ActionPipeline:
    _ensure_services()
    return pipeline


def get_sender() -> TelegramSender:
    _ensure_services()
    return sender
