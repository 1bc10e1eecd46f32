from __future__ import annotations

import logging
from pathlib import Path

from app.services.domain.exceptions import ExternalIOError

logger = logging.getLogger(__name__)


class FileReclaimer:
    """
    Deletes blobs referenced by task items, e.g. ``/static/<uuid>.jpg`` maps to
    ``<uploads_dir>/<uuid>.jpg``.

    Never raises: failures are logged as ExternalIOError and reported through
    the boolean result only.
    """

    def __init__(self, uploads_dir: str | Path, *, static_prefix: str = "/static") -> None:
        self._root = Path(uploads_dir)
        self._prefix = "/" + static_prefix.strip("/") + "/"

    def resolve(self, reference: str) -> Path | None:
        """Map a data reference to a path under the uploads root, or None if it escapes it."""
        rel = reference.strip()
        if rel.startswith(self._prefix):
            rel = rel[len(self._prefix):]
        rel = rel.lstrip("/")
        if not rel:
            return None
        root = self._root.resolve()
        target = (root / rel).resolve()
        if target == root or root not in target.parents:
            return None
        return target

    def reclaim(self, reference: str) -> bool:
        if not reference:
            return False
        target = self.resolve(reference)
        if target is None:
            logger.warning("Refusing to reclaim reference outside uploads: %r", reference)
            return False
        try:
            target.unlink()
        except FileNotFoundError:
            logger.debug("Blob already gone: %s", target)
            return False
        except OSError as exc:
            err = ExternalIOError(f"Cannot remove {target}: {exc}", code="reclaim_failed")
            logger.warning("File reclamation failed: %s", err)
            return False
        logger.info("Reclaimed blob %s", target)
        return True
