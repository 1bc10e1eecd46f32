# Re-export the store surface used by the container and tests
from .guard import ConcurrencyGuard
from .json_gateway import JsonSnapshotGateway
from .lifecycle import LifecycleEvent, TaskState
from .models import Category, Snapshot, Task, TaskItem
from .task_store import OrderedTaskStore, TaskView
from .writer import BackgroundSnapshotWriter

__all__ = [
    "ConcurrencyGuard",
    "JsonSnapshotGateway",
    "LifecycleEvent",
    "TaskState",
    "Category",
    "Snapshot",
    "Task",
    "TaskItem",
    "OrderedTaskStore",
    "TaskView",
    "BackgroundSnapshotWriter",
]
