# app/db/models/task_item.py
from __future__ import annotations

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text

from app.db.base import Base


class TaskItemRecord(Base):
    __tablename__ = "task_items"

    id = Column(String(36), primary_key=True)
    task_id = Column(
        String(36),
        ForeignKey("tasks.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    type = Column(String(64), nullable=False, default="")
    # opaque blob reference, e.g. /static/<uuid>.jpg
    data = Column(Text, nullable=False, default="")
    time = Column(DateTime(timezone=True), nullable=False)
    position = Column(Integer, nullable=True)

