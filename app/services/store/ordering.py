"""
Position arithmetic over the active task order.

All helpers act only on tasks whose state is Active; Deleted tasks keep their
frozen position untouched. Cost is linear in the number of tasks scanned.
"""

from __future__ import annotations

from typing import Iterable, List

from .models import Task


def _active(tasks: Iterable[Task]) -> List[Task]:
    return [t for t in tasks if t.is_active]


def next_position(tasks: Iterable[Task]) -> int:
    """Position just past the current end of the active order (0 when empty)."""
    return max((t.position for t in _active(tasks)), default=-1) + 1


def clamp(position: int, lower: int, upper: int) -> int:
    return max(lower, min(position, upper))


def open_slot(tasks: Iterable[Task], position: int) -> None:
    """Shift every active task at ``position`` or above up by one."""
    for t in _active(tasks):
        if t.position >= position:
            t.position += 1


def close_slot(tasks: Iterable[Task], position: int) -> None:
    """Shift every active task above ``position`` down by one."""
    for t in _active(tasks):
        if t.position > position:
            t.position -= 1


def move(tasks: Iterable[Task], moving: Task, new_position: int) -> bool:
    """
    Extract ``moving`` from its slot and reinsert it at ``new_position``.
    Returns False when nothing changed.
    """
    old = moving.position
    if old == new_position:
        return False

    for t in _active(tasks):
        if t is moving:
            continue
        if old < new_position and old < t.position <= new_position:
            t.position -= 1
        elif new_position < old and new_position <= t.position < old:
            t.position += 1
    moving.position = new_position
    return True


def is_dense(tasks: Iterable[Task]) -> bool:
    positions = sorted(t.position for t in _active(tasks))
    return positions == list(range(len(positions)))


def densify(tasks: Iterable[Task]) -> bool:
    """
    Reassign active positions to 0..k-1 keeping their relative order
    (ties broken by iteration order). Returns True if anything moved.
    """
    ordered = sorted(enumerate(_active(tasks)), key=lambda pair: (pair[1].position, pair[0]))
    changed = False
    for rank, (_, t) in enumerate(ordered):
        if t.position != rank:
            t.position = rank
            changed = True
    return changed


__all__ = [
    "next_position",
    "clamp",
    "open_slot",
    "close_slot",
    "move",
    "is_dense",
    "densify",
]
