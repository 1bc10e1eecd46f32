from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, TypeVar

from sqlalchemy import Engine, delete, insert, select, update
from sqlalchemy.exc import SQLAlchemyError

from app.db.base import Base
from app.db.models.category import CategoryRecord
from app.db.models.task import TaskRecord
from app.db.models.task_item import TaskItemRecord
from app.db.session import create_db_engine, create_session_factory
from app.services.domain.exceptions import StorageIOError

from .lifecycle import TaskState
from .models import Category, Snapshot, Task, TaskItem, as_utc

logger = logging.getLogger(__name__)

E = TypeVar("E")


# ------------------ mappers ------------------


def _opt_utc(value: Optional[datetime]) -> Optional[datetime]:
    return as_utc(value) if value is not None else None


def _task_to_domain(r: TaskRecord) -> Task:
    """ORM row -> Domain. A non-null deletion timestamp means Deleted."""
    deleted_at = _opt_utc(r.deleted_at)
    return Task(
        id=r.id,
        category_id=r.category_id or "",
        name=r.name or "",
        is_success=bool(r.is_success),
        price=float(r.price) if r.price is not None else None,
        position=int(r.position or 0),
        state=TaskState.DELETED if deleted_at is not None else TaskState.ACTIVE,
        deleted_at=deleted_at,
    )


def _task_from_domain(t: Task) -> Dict[str, Any]:
    return dict(
        id=t.id,
        category_id=t.category_id,
        name=t.name,
        is_success=t.is_success,
        price=t.price,
        position=t.position,
        deleted_at=_opt_utc(t.deleted_at),
    )


def _item_to_domain(r: TaskItemRecord) -> TaskItem:
    return TaskItem(
        id=r.id,
        task_id=r.task_id,
        type=r.type or "",
        data=r.data or "",
        time=as_utc(r.time),
        position=int(r.position) if r.position is not None else None,
    )


def _item_from_domain(i: TaskItem) -> Dict[str, Any]:
    return dict(
        id=i.id,
        task_id=i.task_id,
        type=i.type,
        data=i.data,
        time=as_utc(i.time),
        position=i.position,
    )


def _category_from_domain(c: Category) -> Dict[str, Any]:
    return dict(id=c.id, data=c.label)


def _diff(
    before: Mapping[str, E],
    after: Mapping[str, E],
    to_row: Callable[[E], Dict[str, Any]],
) -> Tuple[List[str], List[Dict[str, Any]], List[Dict[str, Any]]]:
    """Return (removed ids, rows to insert, rows to update) between two id-keyed maps."""
    removed = [key for key in before if key not in after]
    added: List[Dict[str, Any]] = []
    changed: List[Dict[str, Any]] = []
    for key, entity in after.items():
        old = before.get(key)
        if old is None:
            added.append(to_row(entity))
        elif old != entity:
            changed.append(to_row(entity))
    return removed, added, changed


# ------------------ gateway ------------------


class SqlSnapshotGateway:
    """
    Relational persistence for the snapshot: one table per entity, indexed
    integer position and nullable deletion timestamp on tasks.

    The gateway remembers the last snapshot it loaded or committed. ``save``
    compares the new snapshot against it by id and, inside one transaction,
    deletes, inserts and updates only the rows that differ, one bulk statement
    per table and kind. A move therefore touches just the tasks whose position
    shifted. The remembered snapshot only advances after a commit.
    """

    def __init__(self, dsn: str, *, engine: Optional[Engine] = None, create_schema: bool = True) -> None:
        self._dsn = dsn
        self._engine = engine or create_db_engine(dsn)
        self._session_factory = create_session_factory(self._engine)
        self._committed: Optional[Snapshot] = None
        if create_schema:
            try:
                Base.metadata.create_all(self._engine)
            except SQLAlchemyError as exc:
                logger.exception("Schema bootstrap failed")
                raise StorageIOError(f"Cannot initialize schema: {exc}", code="schema_failed") from exc

    @property
    def engine(self) -> Engine:
        return self._engine

    def describe(self) -> str:
        return f"sql:{self._engine.url.get_backend_name()}"

    def _read(self) -> Snapshot:
        snap = Snapshot()
        with self._session_factory() as session:
            for c in session.execute(select(CategoryRecord)).scalars():
                snap.categories[c.id] = Category(id=c.id, label=c.data or "")
            task_stmt = select(TaskRecord).order_by(TaskRecord.position, TaskRecord.id)
            for t in session.execute(task_stmt).scalars():
                snap.tasks[t.id] = _task_to_domain(t)
            item_stmt = select(TaskItemRecord).order_by(
                TaskItemRecord.task_id, TaskItemRecord.position, TaskItemRecord.time
            )
            for i in session.execute(item_stmt).scalars():
                snap.task_items[i.id] = _item_to_domain(i)
        return snap

    def load(self) -> Snapshot:
        try:
            snap = self._read()
        except SQLAlchemyError as exc:
            logger.exception("Failed to load snapshot from %s", self.describe())
            raise StorageIOError(f"Cannot load snapshot: {exc}", code="load_failed") from exc

        self._committed = snap.copy()
        logger.info(
            "Snapshot loaded backend=%s categories=%d tasks=%d items=%d",
            self.describe(),
            len(snap.categories),
            len(snap.tasks),
            len(snap.task_items),
        )
        return snap

    def save(self, snapshot: Snapshot) -> None:
        try:
            before = self._committed if self._committed is not None else self._read()

            cat_removed, cat_added, cat_changed = _diff(
                before.categories, snapshot.categories, _category_from_domain
            )
            task_removed, task_added, task_changed = _diff(before.tasks, snapshot.tasks, _task_from_domain)
            item_removed, item_added, item_changed = _diff(
                before.task_items, snapshot.task_items, _item_from_domain
            )

            with self._session_factory() as session:
                with session.begin():
                    # children first so no item ever points at a removed task
                    if item_removed:
                        session.execute(delete(TaskItemRecord).where(TaskItemRecord.id.in_(item_removed)))
                    if task_removed:
                        session.execute(delete(TaskRecord).where(TaskRecord.id.in_(task_removed)))
                    if cat_removed:
                        session.execute(delete(CategoryRecord).where(CategoryRecord.id.in_(cat_removed)))

                    if cat_added:
                        session.execute(insert(CategoryRecord), cat_added)
                    if cat_changed:
                        session.execute(update(CategoryRecord), cat_changed)
                    if task_added:
                        session.execute(insert(TaskRecord), task_added)
                    if task_changed:
                        session.execute(update(TaskRecord), task_changed)
                    if item_added:
                        session.execute(insert(TaskItemRecord), item_added)
                    if item_changed:
                        session.execute(update(TaskItemRecord), item_changed)
        except SQLAlchemyError as exc:
            logger.exception("Failed to save snapshot to %s", self.describe())
            raise StorageIOError(f"Cannot save snapshot: {exc}", code="save_failed") from exc

        self._committed = snapshot.copy()
        logger.debug(
            "Snapshot saved backend=%s tasks +%d ~%d -%d items +%d ~%d -%d",
            self.describe(),
            len(task_added),
            len(task_changed),
            len(task_removed),
            len(item_added),
            len(item_changed),
            len(item_removed),
        )

    def close(self) -> None:
        self._engine.dispose()
