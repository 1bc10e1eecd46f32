# tests/fakes.py
from __future__ import annotations

from typing import List, Optional

from app.services.domain.exceptions import StorageIOError
from app.services.store.models import Snapshot


class RecordingReclaimer:
    """Collects every reference the store asks to reclaim."""

    def __init__(self) -> None:
        self.calls: List[str] = []

    def reclaim(self, reference: str) -> bool:
        self.calls.append(reference)
        return True


class MemoryGateway:
    """In-memory gateway; ``fail_saves`` makes the next N saves raise."""

    def __init__(self, initial: Optional[Snapshot] = None) -> None:
        self.saved: Optional[Snapshot] = initial.copy() if initial else None
        self.saves = 0
        self.fail_saves = 0
        self.closed = False

    def describe(self) -> str:
        return "memory"

    def load(self) -> Snapshot:
        return self.saved.copy() if self.saved else Snapshot()

    def save(self, snapshot: Snapshot) -> None:
        if self.fail_saves:
            self.fail_saves -= 1
            raise StorageIOError("disk full", code="save_failed")
        self.saves += 1
        self.saved = snapshot.copy()

    def close(self) -> None:
        self.closed = True
