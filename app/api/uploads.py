from __future__ import annotations

import logging
from typing import Callable

from fastapi import APIRouter, Depends, File, UploadFile, status
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from app.api.deps import get_ingestor
from app.db.schemas.upload import UploadData, UploadResponse
from app.services.domain.exceptions import DomainValidationError, ExternalIOError
from app.services.media.ingest import IngestedMedia, MediaIngestor

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/upload", tags=["uploads"])

_CHUNK_SIZE = 1024 * 1024


def _failure(code: int, message: str) -> JSONResponse:
    body = UploadResponse(success=False, statusCode=code, message=message)
    return JSONResponse(status_code=code, content=body.model_dump())


async def _read_limited(upload: UploadFile, limit: int) -> bytes | None:
    """Read the upload chunk by chunk; None as soon as it exceeds ``limit`` bytes."""
    if upload.size is not None and upload.size > limit:
        return None
    buf = bytearray()
    while True:
        chunk = await upload.read(_CHUNK_SIZE)
        if not chunk:
            return bytes(buf)
        buf.extend(chunk)
        if len(buf) > limit:
            return None


async def _ingest(
    upload: UploadFile,
    ingest: Callable[[bytes, str], IngestedMedia],
    label: str,
    limit: int,
):
    try:
        data = await _read_limited(upload, limit)
    finally:
        await upload.close()

    filename = upload.filename or ""
    if data is None:
        logger.info("%s upload rejected file=%s: larger than %d bytes", label, filename, limit)
        return _failure(status.HTTP_400_BAD_REQUEST, f"{label} exceeds {limit} bytes")

    try:
        media = await run_in_threadpool(ingest, data, filename)
    except DomainValidationError as exc:
        logger.info("%s upload rejected file=%s: %s", label, filename, exc.message)
        return _failure(status.HTTP_400_BAD_REQUEST, f"{label} could not be read: {exc.message}")
    except ExternalIOError as exc:
        return _failure(status.HTTP_500_INTERNAL_SERVER_ERROR, f"{label} could not be saved: {exc.message}")

    return UploadResponse(
        success=True,
        statusCode=status.HTTP_200_OK,
        message=f"{label} uploaded successfully",
        data=UploadData.from_media(media),
    )


@router.post("/image", response_model=UploadResponse)
async def upload_image(image: UploadFile = File(...), ingestor: MediaIngestor = Depends(get_ingestor)):
    """JPEG, PNG, GIF, BMP, TIFF or WebP. HEIC/HEIF is rejected."""
    return await _ingest(image, ingestor.ingest_image, "Image", ingestor.max_image_bytes)


@router.post("/audio", response_model=UploadResponse)
async def upload_audio(audio: UploadFile = File(...), ingestor: MediaIngestor = Depends(get_ingestor)):
    return await _ingest(audio, ingestor.ingest_audio, "Audio", ingestor.max_media_bytes)


@router.post("/video", response_model=UploadResponse)
async def upload_video(video: UploadFile = File(...), ingestor: MediaIngestor = Depends(get_ingestor)):
    return await _ingest(video, ingestor.ingest_video, "Video", ingestor.max_media_bytes)
