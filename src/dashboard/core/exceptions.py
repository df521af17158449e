"""Error taxonomy for the project aggregate and its HTTP mapping.

Store failures are tagged with a StoreErrorKind so callers can tell a
network blip from a conflict. Failures in the middle of a multi-step
mutation are wrapped in PartialSyncError, which names the step that broke.
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum
from typing import TYPE_CHECKING, Any

from asgi_correlation_id import correlation_id
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.dashboard.core.logging import get_logger

if TYPE_CHECKING:
    from src.dashboard.services.consistency import SyncStep

logger = get_logger(__name__)


class StoreErrorKind(str, Enum):
    """Failure categories reported by a RecordStore."""

    NETWORK = "network"
    NOT_AUTHENTICATED = "not_authenticated"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    UNKNOWN = "unknown"


class DashboardError(Exception):
    """Base class for all domain errors."""


class NotAuthenticated(DashboardError):
    """No owner identity could be resolved for a write."""

    def __init__(self, message: str = "No owner identity could be resolved"):
        super().__init__(message)


class ProjectValidationError(DashboardError):
    """A draft or patch was rejected before any store call was made."""

    def __init__(self, message: str, errors: Sequence[dict[str, Any]] = ()):
        super().__init__(message)
        self.errors = list(errors)


class StoreError(DashboardError):
    """A RecordStore operation failed."""

    def __init__(
        self,
        kind: StoreErrorKind,
        message: str,
        table: str | None = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.table = table

    def __str__(self) -> str:
        where = f" on {self.table}" if self.table else ""
        return f"[{self.kind.value}]{where}: {self.message}"


class FetchError(StoreError):
    """Reading the aggregate (or its projection) failed."""


class PartialSyncError(DashboardError):
    """A mutation step failed after earlier steps had already been committed.

    Nothing is rolled back. ``completed_steps`` lists what did land so the
    caller can decide whether re-running the mutation is safe.
    """

    def __init__(
        self,
        step: SyncStep,
        cause: StoreError,
        completed_steps: Sequence[SyncStep] = (),
        project_id: int | None = None,
    ):
        super().__init__(f"Step '{step.value}' failed: {cause}")
        self.step = step
        self.cause = cause
        self.completed_steps = list(completed_steps)
        self.project_id = project_id


_STORE_ERROR_STATUS = {
    StoreErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    StoreErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    StoreErrorKind.NOT_AUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
}


def _error_response(status_code: int, detail: Any, **extra: Any) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"detail": detail, "request_id": correlation_id.get(), **extra},
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Map domain errors to JSON responses that carry the request_id."""

    @app.exception_handler(StarletteHTTPException)
    async def starlette_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        return _error_response(exc.status_code, exc.detail)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        return _error_response(exc.status_code, exc.detail)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return _error_response(
            422,
            "Invalid request",
            errors=[{"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in exc.errors()],
        )

    @app.exception_handler(ProjectValidationError)
    async def validation_error_handler(
        request: Request, exc: ProjectValidationError
    ) -> JSONResponse:
        return _error_response(
            422,
            str(exc),
            errors=[{"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in exc.errors],
        )

    @app.exception_handler(NotAuthenticated)
    async def not_authenticated_handler(request: Request, exc: NotAuthenticated) -> JSONResponse:
        return _error_response(status.HTTP_401_UNAUTHORIZED, str(exc))

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
        status_code = _STORE_ERROR_STATUS.get(exc.kind, status.HTTP_503_SERVICE_UNAVAILABLE)
        if status_code >= 500:
            logger.warning(
                "Store error",
                kind=exc.kind.value,
                table=exc.table,
                path=request.url.path,
            )
        return _error_response(status_code, exc.message, kind=exc.kind.value)

    @app.exception_handler(PartialSyncError)
    async def partial_sync_handler(request: Request, exc: PartialSyncError) -> JSONResponse:
        logger.error(
            "Partial sync failure",
            step=exc.step.value,
            project_id=exc.project_id,
            kind=exc.cause.kind.value,
            path=request.url.path,
        )
        return _error_response(
            status.HTTP_502_BAD_GATEWAY,
            str(exc),
            step=exc.step.value,
            completed_steps=[s.value for s in exc.completed_steps],
            project_id=exc.project_id,
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        request_id = correlation_id.get()
        logger.exception(
            "Unhandled exception",
            exc_info=exc,
            request_id=request_id,
            path=request.url.path,
        )
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")
