from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from app.services.media.ingest import IngestedMedia


class UploadData(BaseModel):
    id: str = ""
    size: int = 0
    url: str = ""
    file_name: str = ""
    content_type: str = ""
    duration_ms: Optional[int] = None

    @classmethod
    def from_media(cls, media: IngestedMedia) -> "UploadData":
        return cls(
            id=media.storage_id,
            size=media.byte_size,
            url=media.url,
            file_name=media.file_name,
            content_type=media.content_type,
        )


class UploadResponse(BaseModel):
    success: bool
    statusCode: int
    message: str
    data: UploadData = Field(default_factory=UploadData)
