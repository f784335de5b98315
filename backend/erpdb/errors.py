# backend/erpdb/errors.py
"""
Domain errors raised by services.

Services never build HTTP responses themselves; they raise one of the
errors below and the application maps it to a status code in one place.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class DomainError(Exception):
    """Base class for per-request failures that the caller can recover from."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(DomainError):
    """A referenced entity id does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class ValidationError(DomainError):
    """A caller-supplied reference fails a domain precondition."""

    status_code = status.HTTP_422_UNPROCESSABLE_CONTENT


class InvalidOperationError(DomainError):
    """The request would violate a stock invariant."""

    status_code = status.HTTP_409_CONFLICT


class InvalidStateError(DomainError):
    """The entity is not in the lifecycle state the transition requires."""

    status_code = status.HTTP_409_CONFLICT


def install_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError):
        logger.info(
            "Request refused",
            extra={
                "path": request.url.path,
                "error": type(exc).__name__,
                "detail": exc.message,
            },
        )
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})
