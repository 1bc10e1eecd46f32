from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from .lifecycle import TaskState


# ---------- helpers (pure, domain-level) ----------

_FRACTION_RE = re.compile(r"\.(\d{6})\d+")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes and normalize aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_time(value: Any) -> datetime:
    """
    Parse RFC3339/ISO timestamps as written by this service or by older
    snapshot files (``Z`` suffix, nanosecond fractions).
    """
    if isinstance(value, datetime):
        return as_utc(value)
    if not isinstance(value, str) or not value:
        raise ValueError(f"Invalid timestamp: {value!r}")
    raw = value.strip()
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    raw = _FRACTION_RE.sub(lambda m: "." + m.group(1), raw)
    return as_utc(datetime.fromisoformat(raw))


def _format_time(value: datetime) -> str:
    return as_utc(value).isoformat()


def _opt_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    return float(value)


# ---------- entities ----------

@dataclass
class Category:
    id: str
    label: str


@dataclass
class Task:
    id: str
    category_id: str
    name: str
    is_success: bool = False
    price: Optional[float] = None
    position: int = 0
    state: TaskState = TaskState.ACTIVE
    deleted_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.state is TaskState.ACTIVE

    @property
    def is_deleted(self) -> bool:
        return self.state is TaskState.DELETED


@dataclass
class TaskItem:
    id: str
    task_id: str
    type: str
    data: str
    time: datetime
    position: Optional[int] = None


# ---------- snapshot ----------

@dataclass
class Snapshot:
    """
    Complete state of categories, tasks and items.

    Dicts keep insertion order, which is also the tie-breaker whenever two
    entities would otherwise sort equal.
    """

    categories: Dict[str, Category] = field(default_factory=dict)
    tasks: Dict[str, Task] = field(default_factory=dict)
    task_items: Dict[str, TaskItem] = field(default_factory=dict)

    def copy(self) -> "Snapshot":
        return Snapshot(
            categories={k: replace(v) for k, v in self.categories.items()},
            tasks={k: replace(v) for k, v in self.tasks.items()},
            task_items={k: replace(v) for k, v in self.task_items.items()},
        )

    def active_tasks(self) -> List[Task]:
        return sorted((t for t in self.tasks.values() if t.is_active), key=lambda t: t.position)

    def deleted_tasks(self) -> List[Task]:
        return [t for t in self.tasks.values() if t.is_deleted]

    def items_for(self, task_id: str) -> List[TaskItem]:
        items = [i for i in self.task_items.values() if i.task_id == task_id]
        # rank first, unranked last; stable for equal ranks
        return sorted(items, key=lambda i: (i.position is None, i.position or 0))

    # ---- serialization ----

    def to_dict(self) -> Dict[str, Any]:
        tasks: List[Dict[str, Any]] = []
        for t in self.tasks.values():
            row: Dict[str, Any] = {
                "id": t.id,
                "category_id": t.category_id,
                "name": t.name,
                "is_success": t.is_success,
                "price": t.price,
                "position": t.position,
            }
            if t.deleted_at is not None:
                row["deleted_at"] = _format_time(t.deleted_at)
            tasks.append(row)

        return {
            "categories": [{"id": c.id, "data": c.label} for c in self.categories.values()],
            "tasks": tasks,
            "task_items": [
                {
                    "id": i.id,
                    "task_id": i.task_id,
                    "type": i.type,
                    "data": i.data,
                    "time": _format_time(i.time),
                    "position": i.position,
                }
                for i in self.task_items.values()
            ],
        }

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "Snapshot":
        """
        Build a snapshot from its serialized form.
        Lifecycle state is derived here, once: a deletion timestamp means Deleted.
        Raises ValueError/KeyError/TypeError on malformed input.
        """
        snap = cls()
        for c in raw.get("categories") or []:
            snap.categories[str(c["id"])] = Category(id=str(c["id"]), label=str(c.get("data") or ""))

        for t in raw.get("tasks") or []:
            deleted_at = parse_time(t["deleted_at"]) if t.get("deleted_at") else None
            task = Task(
                id=str(t["id"]),
                category_id=str(t.get("category_id") or ""),
                name=str(t.get("name") or ""),
                is_success=bool(t.get("is_success", False)),
                price=_opt_float(t.get("price")),
                position=int(t.get("position") or 0),
                state=TaskState.DELETED if deleted_at is not None else TaskState.ACTIVE,
                deleted_at=deleted_at,
            )
            snap.tasks[task.id] = task

        for i in raw.get("task_items") or []:
            position = i.get("position")
            item = TaskItem(
                id=str(i["id"]),
                task_id=str(i.get("task_id") or ""),
                type=str(i.get("type") or ""),
                data=str(i.get("data") or ""),
                time=parse_time(i["time"]),
                position=int(position) if position is not None else None,
            )
            snap.task_items[item.id] = item
        return snap


__all__ = [
    "Category",
    "Task",
    "TaskItem",
    "Snapshot",
    "utcnow",
    "as_utc",
    "parse_time",
]
