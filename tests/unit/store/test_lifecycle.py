from __future__ import annotations

import pytest

from app.services.domain.exceptions import DomainInvalidState
from app.services.store.lifecycle import LifecycleEvent, TaskState, can_transition, next_state


@pytest.mark.parametrize(
    "state,event,expected",
    [
        (TaskState.ACTIVE, LifecycleEvent.SOFT_DELETE, TaskState.DELETED),
        (TaskState.DELETED, LifecycleEvent.RESTORE, TaskState.ACTIVE),
        (TaskState.ACTIVE, LifecycleEvent.DESTROY, TaskState.DESTROYED),
        (TaskState.DELETED, LifecycleEvent.DESTROY, TaskState.DESTROYED),
    ],
)
def test_allowed_transitions(state, event, expected) -> None:
    assert can_transition(state, event)
    assert next_state(state, event) is expected


@pytest.mark.parametrize(
    "state,event",
    [
        (TaskState.ACTIVE, LifecycleEvent.RESTORE),
        (TaskState.DELETED, LifecycleEvent.SOFT_DELETE),
        (TaskState.DESTROYED, LifecycleEvent.RESTORE),
        (TaskState.DESTROYED, LifecycleEvent.SOFT_DELETE),
        (TaskState.DESTROYED, LifecycleEvent.DESTROY),
    ],
)
def test_rejected_transitions_raise_invalid_state(state, event) -> None:
    assert not can_transition(state, event)
    with pytest.raises(DomainInvalidState) as ei:
        next_state(state, event)
    assert ei.value.code == "invalid_transition"


def test_states_render_as_plain_values() -> None:
    assert str(TaskState.DELETED) == "deleted"
    assert TaskState("active") is TaskState.ACTIVE
