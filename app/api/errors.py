# app/api/errors.py
from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from app.services.domain.exceptions import (
    DomainError,
    DomainInvalidState,
    DomainNotFound,
    DomainValidationError,
    StorageIOError,
)

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: tuple[tuple[type[DomainError], int], ...] = (
    (DomainNotFound, status.HTTP_404_NOT_FOUND),
    (DomainInvalidState, status.HTTP_400_BAD_REQUEST),
    (DomainValidationError, status.HTTP_400_BAD_REQUEST),
    (StorageIOError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def status_for(exc: DomainError) -> int:
    for err_type, code in _STATUS_BY_ERROR:
        if isinstance(exc, err_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    code = status_for(exc)
    if code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=code, content={"error": exc.message})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, domain_error_handler)  # type: ignore[arg-type]
