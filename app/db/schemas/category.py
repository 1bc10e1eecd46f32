from __future__ import annotations

from pydantic import BaseModel, Field


class CategoryIn(BaseModel):
    data: str = Field(default="", max_length=1024)


class CategoryOut(BaseModel):
    id: str
    data: str
