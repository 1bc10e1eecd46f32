from __future__ import annotations

import logging

from app.config import Settings
from app.services.media.ingest import MediaIngestor
from app.services.media.reclaimer import FileReclaimer
from app.services.store.json_gateway import JsonSnapshotGateway
from app.services.store.ports import PersistenceGateway
from app.services.store.sql_gateway import SqlSnapshotGateway
from app.services.store.task_store import OrderedTaskStore
from app.services.store.writer import BackgroundSnapshotWriter

logger = logging.getLogger(__name__)


def build_gateway(settings: Settings) -> PersistenceGateway:
    if settings.STORAGE_BACKEND == "sql":
        gateway: PersistenceGateway = SqlSnapshotGateway(settings.db_url)
    else:
        gateway = JsonSnapshotGateway(settings.DATA_FILE)

    if settings.DURABILITY_MODE == "background":
        logger.warning(
            "Background durability enabled: acknowledged mutations may be lost on crash"
        )
        return BackgroundSnapshotWriter(gateway)
    return gateway


def build_reclaimer(settings: Settings) -> FileReclaimer:
    return FileReclaimer(settings.UPLOADS_DIR, static_prefix=settings.STATIC_PREFIX)


def build_ingestor(settings: Settings) -> MediaIngestor:
    return MediaIngestor(
        settings.UPLOADS_DIR,
        static_prefix=settings.STATIC_PREFIX,
        max_image_bytes=settings.MAX_IMAGE_BYTES,
        max_media_bytes=settings.MAX_MEDIA_BYTES,
    )


def build_store(settings: Settings) -> OrderedTaskStore:
    logger.info("Building task store from %s (%s)", settings.storage_source, settings.DURABILITY_MODE)
    return OrderedTaskStore(build_gateway(settings), reclaimer=build_reclaimer(settings))
