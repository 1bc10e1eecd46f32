# app/db/models/task.py
from __future__ import annotations

from sqlalchemy import Boolean, Column, DateTime, Float, Index, Integer, String, Text

from app.db.base import Base


class TaskRecord(Base):
    """
    Persistent task row. ``deleted_at`` NULL means active; ``position`` is the
    dense rank among active rows and the frozen rank for deleted ones.
    """

    __tablename__ = "tasks"

    id = Column(String(36), primary_key=True)
    # plain reference: categories do not own tasks and may be removed independently
    category_id = Column(String(36), nullable=False, default="", index=True)
    name = Column(Text, nullable=False, default="")
    is_success = Column(Boolean, nullable=False, default=False)
    price = Column(Float, nullable=True)
    position = Column(Integer, nullable=False, default=0)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_tasks_deleted_position", "deleted_at", "position"),
    )
