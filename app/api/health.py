# app/api/health.py
from datetime import datetime, timezone
import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from app.api.deps import get_store
from app.services.store.task_store import OrderedTaskStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def liveness():
    """Simple liveness probe (no external deps)."""
    return {
        "message": "Task Management API running",
        "status": "running",
        "version": "1.0.0",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/storage", status_code=status.HTTP_200_OK)
def readiness_storage(store: OrderedTaskStore = Depends(get_store)):
    stats = store.stats()
    if stats["pending_error"]:
        logger.warning("Storage not ready: %s", stats["pending_error"])
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"error": stats["pending_error"]},
        )
    return {"ok": True, **stats}
