from __future__ import annotations

import logging
import queue
import threading
from typing import Optional

from app.services.domain.exceptions import StorageIOError

from .models import Snapshot
from .ports import PersistenceGateway

logger = logging.getLogger(__name__)

_STOP = object()


class BackgroundSnapshotWriter:
    """
    Gateway wrapper that hands snapshots to a single writer thread.

    Snapshots are written strictly in the order they were handed over. A
    mutation is acknowledged before its snapshot is durable: a crash can lose
    every snapshot still queued.

    A failed write is remembered. The next ``save`` raises it (and drops the
    snapshot it was given, so the caller can roll back), and ``flush`` /
    ``close`` raise it after draining the queue.
    """

    def __init__(self, gateway: PersistenceGateway, *, name: str = "snapshot-writer") -> None:
        self._gateway = gateway
        self._queue: "queue.Queue[object]" = queue.Queue()
        self._error: Optional[StorageIOError] = None
        self._error_lock = threading.Lock()
        self._closed = False
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._thread.start()

    def describe(self) -> str:
        return f"background({self._gateway.describe()})"

    def load(self) -> Snapshot:
        return self._gateway.load()

    @property
    def pending_error(self) -> Optional[StorageIOError]:
        with self._error_lock:
            return self._error

    def _remember(self, err: StorageIOError) -> None:
        with self._error_lock:
            self._error = err

    def _take_error(self) -> Optional[StorageIOError]:
        with self._error_lock:
            err, self._error = self._error, None
            return err

    def save(self, snapshot: Snapshot) -> None:
        if self._closed:
            raise StorageIOError("Snapshot writer is closed", code="writer_closed")
        err = self._take_error()
        if err is not None:
            raise StorageIOError(f"Previous background write failed: {err.message}", code="save_failed") from err
        self._queue.put(snapshot.copy())

    def flush(self) -> None:
        """Block until every queued snapshot has been written; raise a pending failure."""
        self._queue.join()
        err = self._take_error()
        if err is not None:
            raise err

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put(_STOP)
        self._thread.join()
        try:
            err = self._take_error()
            if err is not None:
                raise err
        finally:
            self._gateway.close()

    def _run(self) -> None:
        while True:
            job = self._queue.get()
            try:
                if job is _STOP:
                    return
                try:
                    self._gateway.save(job)  # type: ignore[arg-type]
                except StorageIOError as exc:
                    logger.error("Background snapshot write failed: %s", exc)
                    self._remember(exc)
                except Exception as exc:
                    logger.exception("Unexpected error in background snapshot write")
                    self._remember(StorageIOError(str(exc), code="save_failed"))
            finally:
                self._queue.task_done()
