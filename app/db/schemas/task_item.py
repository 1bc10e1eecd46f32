from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class TaskItemBase(BaseModel):
    type: str = Field(default="", max_length=64)
    data: str = ""


class TaskItemCreate(TaskItemBase):
    task_id: str = Field(min_length=1)


class TaskItemUpdate(TaskItemBase):
    # omitted or empty -> item stays on its current task
    task_id: Optional[str] = None


class TaskItemOut(TaskItemBase):
    id: str
    task_id: str
    time: datetime
    position: Optional[int] = None

    class Config:
        from_attributes = True
