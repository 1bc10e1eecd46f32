from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from app.services.store.task_store import TaskView

from .category import CategoryOut


class TaskBase(BaseModel):
    category_id: str = ""
    name: str = Field(default="", max_length=512)
    is_success: bool = False
    price: Optional[float] = None


class TaskCreate(TaskBase):
    # omitted -> appended at the end of the active order
    position: Optional[int] = None


class TaskUpdate(TaskBase):
    pass


class TaskPositionUpdate(BaseModel):
    position: int


class TaskSuccessUpdate(BaseModel):
    is_success: bool = False
    price: Optional[float] = None


class TaskItemData(BaseModel):
    id: str
    data: str
    time: datetime


class TaskItemView(BaseModel):
    id: str
    type: str
    position: int
    data: TaskItemData


class TaskOut(TaskBase):
    id: str
    position: int
    deleted_at: Optional[datetime] = None
    category: List[CategoryOut] = Field(default_factory=list)
    task_name: List[TaskItemView] = Field(default_factory=list)

    @classmethod
    def from_view(cls, view: TaskView) -> "TaskOut":
        t = view.task
        return cls(
            id=t.id,
            category_id=t.category_id,
            name=t.name,
            is_success=t.is_success,
            price=t.price,
            position=t.position,
            deleted_at=t.deleted_at,
            category=[CategoryOut(id=view.category.id, data=view.category.label)] if view.category else [],
            # item position here is the 1-based display order, not the stored rank
            task_name=[
                TaskItemView(
                    id=item.id,
                    type=item.type,
                    position=idx,
                    data=TaskItemData(id=item.id, data=item.data, time=item.time),
                )
                for idx, item in enumerate(view.items, start=1)
            ],
        )


class MessageOut(BaseModel):
    message: str


class TaskRestoreOut(MessageOut):
    task: TaskOut
