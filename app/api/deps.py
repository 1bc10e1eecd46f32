from __future__ import annotations

from fastapi import Request

from app.services.media.ingest import MediaIngestor
from app.services.store.task_store import OrderedTaskStore


def get_store(request: Request) -> OrderedTaskStore:
    return request.app.state.store


def get_ingestor(request: Request) -> MediaIngestor:
    return request.app.state.ingestor
