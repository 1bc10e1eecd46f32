from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Callable, Dict, Iterator, List, Optional
from uuid import uuid4

from app.services.domain.exceptions import DomainNotFound
from app.utils.logging import format_log_context

from . import ordering
from .guard import ConcurrencyGuard
from .lifecycle import LifecycleEvent, TaskState, next_state
from .models import Category, Snapshot, Task, TaskItem, utcnow
from .ports import FileReclaimerPort, PersistenceGateway

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TaskView:
    """Detached copy of a task with its category and rank-ordered items."""

    task: Task
    category: Optional[Category]
    items: List[TaskItem] = field(default_factory=list)


@dataclass
class _Mutation:
    snap: Snapshot
    changed: bool = True


def _new_id() -> str:
    return str(uuid4())


class OrderedTaskStore:
    """
    Owner of all categories, tasks and items.

    Active tasks always hold positions 0..k-1 with no gaps or duplicates.
    Every mutation runs under the exclusive side of the guard, works on a copy
    of the current snapshot and only replaces the live state once the gateway
    accepted the new snapshot; a StorageIOError therefore leaves the store
    exactly as it was. Reads share the guard and return detached copies.

    Blob reclamation runs after the mutation committed and outside the guard;
    its failures are logged by the reclaimer and never reach the caller.
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        *,
        reclaimer: Optional[FileReclaimerPort] = None,
        guard: Optional[ConcurrencyGuard] = None,
        clock: Callable[[], datetime] = utcnow,
        id_factory: Callable[[], str] = _new_id,
    ) -> None:
        self._gateway = gateway
        self._reclaimer = reclaimer
        self._guard = guard or ConcurrencyGuard()
        self._clock = clock
        self._new_id = id_factory
        self._state = gateway.load()
        self._repair()
        logger.info(
            "OrderedTaskStore ready backend=%s active=%d deleted=%d",
            gateway.describe(),
            len(self._state.active_tasks()),
            len(self._state.deleted_tasks()),
        )

    # ---- internals ----

    def _repair(self) -> None:
        """Re-densify legacy snapshots and drop items whose task is gone."""
        snap = self._state.copy()
        changed = False

        tasks = list(snap.tasks.values())
        if not ordering.is_dense(tasks):
            ordering.densify(tasks)
            logger.warning("Active task positions were not dense; renumbered %d tasks", len(snap.active_tasks()))
            changed = True

        orphans = [i.id for i in snap.task_items.values() if i.task_id not in snap.tasks]
        if orphans:
            for item_id in orphans:
                del snap.task_items[item_id]
            logger.warning("Dropped %d task items referencing missing tasks", len(orphans))
            changed = True

        if changed:
            self._gateway.save(snap)
            self._state = snap

    @contextmanager
    def _mutation(self, op: str, **context: Any) -> Iterator[_Mutation]:
        with self._guard.write():
            m = _Mutation(snap=self._state.copy())
            yield m
            if not m.changed:
                logger.debug("noop %s", format_log_context({"op": op, **context}))
                return
            self._gateway.save(m.snap)
            self._state = m.snap
        logger.info("%s", format_log_context({"op": op, **context}))

    def _reclaim(self, references: List[str]) -> int:
        if self._reclaimer is None:
            return 0
        reclaimed = 0
        for ref in references:
            if self._reclaimer.reclaim(ref):
                reclaimed += 1
        return reclaimed

    @staticmethod
    def _active_task(snap: Snapshot, task_id: str) -> Task:
        task = snap.tasks.get(task_id)
        if task is None or not task.is_active:
            raise DomainNotFound("Task not found", code="task_not_found")
        return task

    @staticmethod
    def _any_task(snap: Snapshot, task_id: str) -> Task:
        task = snap.tasks.get(task_id)
        if task is None:
            raise DomainNotFound("Task not found", code="task_not_found")
        return task

    @staticmethod
    def _item(snap: Snapshot, item_id: str) -> TaskItem:
        item = snap.task_items.get(item_id)
        if item is None:
            raise DomainNotFound("Task item not found", code="item_not_found")
        return item

    @staticmethod
    def _category(snap: Snapshot, category_id: str) -> Category:
        category = snap.categories.get(category_id)
        if category is None:
            raise DomainNotFound("Category not found", code="category_not_found")
        return category

    @staticmethod
    def _view(snap: Snapshot, task: Task) -> TaskView:
        category = snap.categories.get(task.category_id)
        return TaskView(
            task=replace(task),
            category=replace(category) if category else None,
            items=[replace(i) for i in snap.items_for(task.id)],
        )

    # ---- task reads ----

    def list_tasks(self) -> List[TaskView]:
        """Active tasks in position order."""
        with self._guard.read():
            return [self._view(self._state, t) for t in self._state.active_tasks()]

    def list_deleted_tasks(self) -> List[TaskView]:
        with self._guard.read():
            return [self._view(self._state, t) for t in self._state.deleted_tasks()]

    def get_task(self, task_id: str, *, include_deleted: bool = False) -> TaskView:
        with self._guard.read():
            if include_deleted:
                task = self._any_task(self._state, task_id)
            else:
                task = self._active_task(self._state, task_id)
            return self._view(self._state, task)

    # ---- task mutations ----

    def create_task(
        self,
        category_id: str,
        name: str,
        *,
        is_success: bool = False,
        price: Optional[float] = None,
        position: Optional[int] = None,
    ) -> TaskView:
        task_id = self._new_id()
        with self._mutation("create_task", task=task_id, position=position) as m:
            tasks = list(m.snap.tasks.values())
            if position is None:
                target = ordering.next_position(tasks)
            else:
                active_count = len(m.snap.active_tasks())
                target = ordering.clamp(position, 0, active_count)
                ordering.open_slot(tasks, target)
            task = Task(
                id=task_id,
                category_id=category_id,
                name=name,
                is_success=is_success,
                price=price,
                position=target,
            )
            m.snap.tasks[task.id] = task
            view = self._view(m.snap, task)
        return view

    def update_task(
        self,
        task_id: str,
        *,
        category_id: str,
        name: str,
        is_success: bool,
        price: Optional[float],
    ) -> TaskView:
        with self._mutation("update_task", task=task_id) as m:
            task = self._active_task(m.snap, task_id)
            task.category_id = category_id
            task.name = name
            task.is_success = is_success
            task.price = price
            view = self._view(m.snap, task)
        return view

    def mark_success(self, task_id: str, *, is_success: bool, price: Optional[float]) -> TaskView:
        with self._mutation("mark_success", task=task_id, success=is_success) as m:
            task = self._active_task(m.snap, task_id)
            task.is_success = is_success
            task.price = price
            view = self._view(m.snap, task)
        return view

    def move_task(self, task_id: str, new_position: int) -> TaskView:
        """
        Extract the task from its slot and reinsert it at ``new_position``
        (clamped to the active range). Equal positions are a no-op.
        """
        with self._mutation("move_task", task=task_id, to=new_position) as m:
            task = self._active_task(m.snap, task_id)
            active_count = len(m.snap.active_tasks())
            target = ordering.clamp(new_position, 0, active_count - 1)
            m.changed = ordering.move(list(m.snap.tasks.values()), task, target)
            view = self._view(m.snap, task)
        return view

    def soft_delete_task(self, task_id: str) -> TaskView:
        with self._mutation("soft_delete_task", task=task_id) as m:
            task = self._active_task(m.snap, task_id)
            task.state = next_state(task.state, LifecycleEvent.SOFT_DELETE)
            task.deleted_at = self._clock()
            ordering.close_slot(list(m.snap.tasks.values()), task.position)
            view = self._view(m.snap, task)
        return view

    def restore_task(self, task_id: str) -> TaskView:
        """Bring a deleted task back at the end of the active order."""
        with self._mutation("restore_task", task=task_id) as m:
            task = self._any_task(m.snap, task_id)
            state = next_state(task.state, LifecycleEvent.RESTORE)
            task.position = ordering.next_position(m.snap.tasks.values())
            task.state = state
            task.deleted_at = None
            view = self._view(m.snap, task)
        return view

    def permanent_delete_task(self, task_id: str) -> TaskView:
        """
        Destroy a task (active or deleted) and all of its items, then reclaim
        the items' blobs. Destroying an active task closes its slot.
        """
        with self._mutation("permanent_delete_task", task=task_id) as m:
            task = self._any_task(m.snap, task_id)
            was_active = task.is_active
            view = self._view(m.snap, task)
            task.state = next_state(task.state, LifecycleEvent.DESTROY)

            references = []
            for item in m.snap.items_for(task_id):
                if item.data:
                    references.append(item.data)
                del m.snap.task_items[item.id]
            del m.snap.tasks[task_id]
            if was_active:
                ordering.close_slot(list(m.snap.tasks.values()), task.position)

        self._reclaim(references)
        return TaskView(task=replace(view.task, state=TaskState.DESTROYED), category=view.category, items=view.items)

    # ---- categories ----

    def list_categories(self) -> List[Category]:
        with self._guard.read():
            return [replace(c) for c in self._state.categories.values()]

    def get_category(self, category_id: str) -> Category:
        with self._guard.read():
            return replace(self._category(self._state, category_id))

    def create_category(self, label: str) -> Category:
        category = Category(id=self._new_id(), label=label)
        with self._mutation("create_category", category=category.id) as m:
            m.snap.categories[category.id] = category
        return replace(category)

    def update_category(self, category_id: str, label: str) -> Category:
        with self._mutation("update_category", category=category_id) as m:
            category = self._category(m.snap, category_id)
            category.label = label
            result = replace(category)
        return result

    def delete_category(self, category_id: str) -> None:
        # tasks keep their category_id; categories do not own tasks
        with self._mutation("delete_category", category=category_id) as m:
            self._category(m.snap, category_id)
            del m.snap.categories[category_id]

    # ---- task items ----

    def list_items(self) -> List[TaskItem]:
        with self._guard.read():
            return [replace(i) for i in self._state.task_items.values()]

    def get_item(self, item_id: str) -> TaskItem:
        with self._guard.read():
            return replace(self._item(self._state, item_id))

    def items_for_task(self, task_id: str) -> List[TaskItem]:
        with self._guard.read():
            return [replace(i) for i in self._state.items_for(task_id)]

    @staticmethod
    def _next_item_rank(snap: Snapshot, task_id: str) -> int:
        ranks = [i.position or 0 for i in snap.task_items.values() if i.task_id == task_id]
        return max(ranks, default=0) + 1

    def create_item(self, task_id: str, item_type: str, data: str = "") -> TaskItem:
        item_id = self._new_id()
        with self._mutation("create_item", item=item_id, task=task_id) as m:
            self._any_task(m.snap, task_id)
            item = TaskItem(
                id=item_id,
                task_id=task_id,
                type=item_type,
                data=data,
                time=self._clock(),
                position=self._next_item_rank(m.snap, task_id),
            )
            m.snap.task_items[item.id] = item
            result = replace(item)
        return result

    def update_item(
        self,
        item_id: str,
        *,
        item_type: str,
        data: str,
        task_id: Optional[str] = None,
    ) -> TaskItem:
        """Replace type/data; a different ``task_id`` re-parents the item at the end of that task."""
        with self._mutation("update_item", item=item_id, task=task_id) as m:
            item = self._item(m.snap, item_id)
            if task_id and task_id != item.task_id:
                self._any_task(m.snap, task_id)
                item.position = self._next_item_rank(m.snap, task_id)
                item.task_id = task_id
            item.type = item_type
            item.data = data
            result = replace(item)
        return result

    def delete_item(self, item_id: str) -> TaskItem:
        with self._mutation("delete_item", item=item_id) as m:
            item = self._item(m.snap, item_id)
            del m.snap.task_items[item_id]
        if item.data:
            self._reclaim([item.data])
        return replace(item)

    # ---- lifecycle ----

    def stats(self) -> Dict[str, Any]:
        with self._guard.read():
            pending = getattr(self._gateway, "pending_error", None)
            return {
                "backend": self._gateway.describe(),
                "categories": len(self._state.categories),
                "active_tasks": len(self._state.active_tasks()),
                "deleted_tasks": len(self._state.deleted_tasks()),
                "task_items": len(self._state.task_items),
                "pending_error": pending.message if pending else None,
            }

    def flush(self) -> None:
        flush = getattr(self._gateway, "flush", None)
        if flush is not None:
            flush()

    def close(self) -> None:
        with self._guard.write():
            self._gateway.close()
