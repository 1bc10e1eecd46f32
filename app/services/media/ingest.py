from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Optional, Tuple
from uuid import uuid4

from app.services.domain.exceptions import DomainValidationError, ExternalIOError, MediaDecodeError

logger = logging.getLogger(__name__)

DEFAULT_MAX_IMAGE_BYTES = 20 * 1024 * 1024
DEFAULT_MAX_MEDIA_BYTES = 200 * 1024 * 1024

_UNSUPPORTED_IMAGE_EXTS = {".heic", ".heif"}

# (format, canonical extension, content type)
_IMAGE_SIGNATURES: Tuple[Tuple[bytes, str, str, str], ...] = (
    (b"\xff\xd8\xff", "jpeg", ".jpg", "image/jpeg"),
    (b"\x89PNG\r\n\x1a\n", "png", ".png", "image/png"),
    (b"GIF87a", "gif", ".gif", "image/gif"),
    (b"GIF89a", "gif", ".gif", "image/gif"),
    (b"II*\x00", "tiff", ".tiff", "image/tiff"),
    (b"MM\x00*", "tiff", ".tiff", "image/tiff"),
    (b"BM", "bmp", ".bmp", "image/bmp"),
)

AUDIO_CONTENT_TYPES: Dict[str, str] = {
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".ogg": "audio/ogg",
    ".m4a": "audio/mp4",
    ".aac": "audio/aac",
    ".flac": "audio/flac",
    ".wma": "audio/x-ms-wma",
}

VIDEO_CONTENT_TYPES: Dict[str, str] = {
    ".mp4": "video/mp4",
    ".mov": "video/quicktime",
    ".avi": "video/x-msvideo",
    ".webm": "video/webm",
    ".mkv": "video/x-matroska",
    ".flv": "video/x-flv",
    ".wmv": "video/x-ms-wmv",
    ".m4v": "video/x-m4v",
}


@dataclass(frozen=True)
class IngestedMedia:
    storage_id: str
    relative_path: str
    content_type: str
    byte_size: int
    url: str
    file_name: str


def sniff_image(data: bytes) -> Optional[Tuple[str, str, str]]:
    """Return (format, extension, content type) for recognized image bytes."""
    if len(data) >= 12 and data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "webp", ".webp", "image/webp"
    for magic, fmt, ext, ctype in _IMAGE_SIGNATURES:
        if data.startswith(magic):
            return fmt, ext, ctype
    return None


def _extension(filename: str) -> str:
    return Path(filename or "").suffix.lower()


class MediaIngestor:
    """
    Stores uploaded blobs under ``uploads_dir`` with a fresh UUID name and
    describes them for the caller. Images are validated by signature and kept
    byte-for-byte; audio/video are stored as received.
    """

    def __init__(
        self,
        uploads_dir: str | Path,
        *,
        static_prefix: str = "/static",
        max_image_bytes: int = DEFAULT_MAX_IMAGE_BYTES,
        max_media_bytes: int = DEFAULT_MAX_MEDIA_BYTES,
        id_factory: Callable[[], str] = lambda: str(uuid4()),
    ) -> None:
        self._root = Path(uploads_dir)
        self._prefix = "/" + static_prefix.strip("/")
        self._max_image_bytes = max_image_bytes
        self._max_media_bytes = max_media_bytes
        self._new_id = id_factory

    @property
    def max_image_bytes(self) -> int:
        return self._max_image_bytes

    @property
    def max_media_bytes(self) -> int:
        return self._max_media_bytes

    @staticmethod
    def _check_size(data: bytes, limit: int, label: str) -> None:
        if len(data) > limit:
            raise DomainValidationError(f"{label} exceeds {limit} bytes", code="too_large")

    def _store(self, data: bytes, ext: str, content_type: str, file_name: str) -> IngestedMedia:
        storage_id = self._new_id()
        relative = f"{storage_id}{ext}"
        target = self._root / relative
        try:
            self._root.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as exc:
            logger.exception("Failed to store upload %s", target)
            raise ExternalIOError(f"Cannot store file: {exc}", code="store_failed") from exc

        logger.info("Stored upload id=%s type=%s size=%d", storage_id, content_type, len(data))
        return IngestedMedia(
            storage_id=storage_id,
            relative_path=relative,
            content_type=content_type,
            byte_size=len(data),
            url=f"{self._prefix}/{relative}",
            file_name=file_name,
        )

    def ingest_image(self, data: bytes, filename: str) -> IngestedMedia:
        ext = _extension(filename)
        if ext in _UNSUPPORTED_IMAGE_EXTS:
            raise MediaDecodeError(
                "HEIC/HEIF format is not supported. Please convert to JPG/PNG",
                code="unsupported_format",
            )
        if not data:
            raise MediaDecodeError("Empty image upload", code="empty")
        self._check_size(data, self._max_image_bytes, "Image")

        sniffed = sniff_image(data)
        if sniffed is None:
            raise MediaDecodeError(f"Unrecognized image data for {filename!r}", code="decode_failed")
        fmt, save_ext, content_type = sniffed
        logger.debug("Image recognized format=%s original_ext=%s", fmt, ext or "-")
        return self._store(data, save_ext, content_type, filename)

    def ingest_audio(self, data: bytes, filename: str) -> IngestedMedia:
        self._check_size(data, self._max_media_bytes, "Audio")
        ext = _extension(filename) or ".mp3"
        content_type = AUDIO_CONTENT_TYPES.get(ext, "audio/mpeg")
        return self._store(data, ext, content_type, filename)

    def ingest_video(self, data: bytes, filename: str) -> IngestedMedia:
        self._check_size(data, self._max_media_bytes, "Video")
        ext = _extension(filename) or ".mp4"
        content_type = VIDEO_CONTENT_TYPES.get(ext, "video/mp4")
        return self._store(data, ext, content_type, filename)
