"""
Collaborator contracts used by the ordered task store.

- No project-internal imports beyond the snapshot type
"""

from __future__ import annotations

from typing import Protocol

from .models import Snapshot


class PersistenceGateway(Protocol):
    """Durable load/save of the full snapshot."""

    def load(self) -> Snapshot:
        """Return the stored snapshot, or an empty one when nothing exists yet."""
        ...

    def save(self, snapshot: Snapshot) -> None:
        """Write ``snapshot`` durably; raise StorageIOError on failure."""
        ...

    def close(self) -> None:
        ...

    def describe(self) -> str:
        ...


class FileReclaimerPort(Protocol):
    def reclaim(self, reference: str) -> bool:
        """Best-effort delete of the blob behind ``reference``; never raises."""
        ...
