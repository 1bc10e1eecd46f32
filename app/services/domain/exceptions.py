"""Domain-level exceptions shared across the store, media and API layers."""

from __future__ import annotations


class DomainError(Exception):
    """Base exception for domain-level failures."""

    def __init__(self, message: str, *, code: int | str | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.message} (code={self.code})" if self.code is not None else self.message


class DomainNotFound(DomainError):
    """The target entity does not exist or is not reachable in its current state."""


class DomainInvalidState(DomainError):
    """A lifecycle precondition does not hold (e.g. restoring an active task)."""


class DomainValidationError(DomainError):
    """Malformed input rejected at the boundary."""


class MediaDecodeError(DomainValidationError):
    """Uploaded bytes could not be recognized as the declared media kind."""


class StorageIOError(DomainError):
    """Durable snapshot could not be read or written."""


class ExternalIOError(DomainError):
    """Blob storage operation failed; never fatal for store mutations."""


__all__ = [
    "DomainError",
    "DomainNotFound",
    "DomainInvalidState",
    "DomainValidationError",
    "MediaDecodeError",
    "StorageIOError",
    "ExternalIOError",
]
