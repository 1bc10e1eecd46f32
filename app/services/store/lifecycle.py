from __future__ import annotations

from enum import Enum
from typing import Dict, Tuple

from app.services.domain.exceptions import DomainInvalidState


class TaskState(str, Enum):
    ACTIVE = "active"
    DELETED = "deleted"
    DESTROYED = "destroyed"

    def __str__(self) -> str:
        return self.value


class LifecycleEvent(str, Enum):
    SOFT_DELETE = "soft_delete"
    RESTORE = "restore"
    DESTROY = "destroy"

    def __str__(self) -> str:
        return self.value


# Destroyed is terminal: no entry has it as a source.
_TRANSITIONS: Dict[Tuple[TaskState, LifecycleEvent], TaskState] = {
    (TaskState.ACTIVE, LifecycleEvent.SOFT_DELETE): TaskState.DELETED,
    (TaskState.DELETED, LifecycleEvent.RESTORE): TaskState.ACTIVE,
    (TaskState.ACTIVE, LifecycleEvent.DESTROY): TaskState.DESTROYED,
    (TaskState.DELETED, LifecycleEvent.DESTROY): TaskState.DESTROYED,
}


def can_transition(state: TaskState, event: LifecycleEvent) -> bool:
    return (state, event) in _TRANSITIONS


def next_state(state: TaskState, event: LifecycleEvent) -> TaskState:
    """Return the state reached from ``state`` via ``event`` or raise DomainInvalidState."""
    try:
        return _TRANSITIONS[(state, event)]
    except KeyError:
        raise DomainInvalidState(
            f"Cannot {event.value.replace('_', ' ')} a task in state '{state.value}'",
            code="invalid_transition",
        ) from None


__all__ = ["TaskState", "LifecycleEvent", "can_transition", "next_state"]
