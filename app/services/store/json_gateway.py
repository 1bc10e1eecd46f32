from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from app.services.domain.exceptions import StorageIOError

from .models import Snapshot

logger = logging.getLogger(__name__)


class JsonSnapshotGateway:
    """
    Flat-file persistence: the whole snapshot is one JSON document rewritten
    on every save.

    Writes go to a temp file in the same directory, are fsynced, then renamed
    over the target, so a crash mid-write leaves the previous snapshot intact.
    A missing file on load yields an empty snapshot which is written back
    immediately.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def describe(self) -> str:
        return f"json:{self._path}"

    def load(self) -> Snapshot:
        if not self._path.exists():
            logger.info("No snapshot at %s; initializing empty database", self._path)
            snapshot = Snapshot()
            self.save(snapshot)
            return snapshot

        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.exception("Failed to read snapshot %s", self._path)
            raise StorageIOError(f"Cannot read snapshot {self._path}: {exc}", code="load_failed") from exc

        if not isinstance(raw, dict):
            raise StorageIOError(f"Snapshot {self._path} is not a JSON object", code="load_failed")

        try:
            snapshot = Snapshot.from_dict(raw)
        except (KeyError, TypeError, ValueError) as exc:
            logger.exception("Malformed snapshot %s", self._path)
            raise StorageIOError(f"Malformed snapshot {self._path}: {exc}", code="load_failed") from exc

        logger.info(
            "Snapshot loaded path=%s categories=%d tasks=%d items=%d",
            self._path,
            len(snapshot.categories),
            len(snapshot.tasks),
            len(snapshot.task_items),
        )
        return snapshot

    def save(self, snapshot: Snapshot) -> None:
        payload = json.dumps(snapshot.to_dict(), indent=2, ensure_ascii=False)
        tmp_name: str | None = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self._path.name}.", suffix=".tmp", dir=str(self._path.parent)
            )
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, self._path)
            tmp_name = None
        except OSError as exc:
            logger.exception("Failed to write snapshot %s", self._path)
            raise StorageIOError(f"Cannot write snapshot {self._path}: {exc}", code="save_failed") from exc
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    logger.warning("Could not remove temp snapshot %s", tmp_name)

    def close(self) -> None:
        """Nothing to release; kept for gateway symmetry."""
        return
