"""Common route helpers."""

from __future__ import annotations

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from codevault.api.schemas.projects import StatsResponse
from codevault.core.history_manager import ProjectStats
from codevault.errors import (
    ActiveProjectExistsError,
    HistoryError,
    MissingSessionReferenceError,
    ProjectNotFoundError,
    StoreUnavailableError,
    UnknownVersionError,
)

_STATUS_BY_ERROR: dict[type[HistoryError], int] = {
    ProjectNotFoundError: status.HTTP_404_NOT_FOUND,
    UnknownVersionError: status.HTTP_404_NOT_FOUND,
    ActiveProjectExistsError: status.HTTP_409_CONFLICT,
    MissingSessionReferenceError: status.HTTP_409_CONFLICT,
    StoreUnavailableError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


async def _history_error(request: Request, exc: Exception) -> JSONResponse:
    code = status.HTTP_500_INTERNAL_SERVER_ERROR
    for error_type, mapped in _STATUS_BY_ERROR.items():
        if isinstance(exc, error_type):
            code = mapped
            break
    body: dict[str, object] = {"detail": str(exc)}
    if isinstance(exc, UnknownVersionError):
        body["available"] = exc.available
    return JSONResponse(status_code=code, content=body)


async def _value_error(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content={"detail": str(exc)}
    )


def register_error_handlers(app: FastAPI) -> None:
    """Map engine errors onto HTTP status codes."""
    app.add_exception_handler(HistoryError, _history_error)
    app.add_exception_handler(ValueError, _value_error)


def stats_response(stats: ProjectStats) -> StatsResponse:
    return StatsResponse(
        project_id=stats.project_id,
        total_files=stats.total_files,
        total_commits=stats.total_commits,
        latest_commit=stats.latest_commit,
        file_types=stats.file_types,
        deployment_url=stats.deployment_url,
        last_deployed_at=stats.last_deployed_at,
    )
