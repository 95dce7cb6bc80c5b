"""Session-scoped project routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from codevault.api.deps import get_history_manager
from codevault.api.routes.common import stats_response
from codevault.api.schemas.projects import FilesResponse, StatsResponse
from codevault.api.schemas.sessions import (
    AddFilesRequest,
    IncrementalEditRequest,
    ResolveProjectRequest,
    SessionDeploymentRequest,
)
from codevault.core.history_manager import HistoryManager
from codevault.models.version import VersionHistory

router = APIRouter(prefix="/api/v1/sessions/{session_id}", tags=["sessions"])


@router.post("/project")
async def resolve_project(
    session_id: str,
    request: ResolveProjectRequest,
    manager: HistoryManager = Depends(get_history_manager),
) -> dict[str, str]:
    project_id = await manager.resolve_project_for_session(
        session_id, request.user_id, project_name=request.project_name
    )
    return {"project_id": project_id}


@router.post("/files", status_code=status.HTTP_201_CREATED)
async def add_files(
    session_id: str,
    request: AddFilesRequest,
    manager: HistoryManager = Depends(get_history_manager),
) -> dict[str, str]:
    result = await manager.add_files_to_session_project(
        session_id, request.user_id, request.files, request.message
    )
    return {"project_id": result.project_id, "commit_id": result.commit_id}


@router.post("/edits", status_code=status.HTTP_201_CREATED)
async def save_edit(
    session_id: str,
    request: IncrementalEditRequest,
    manager: HistoryManager = Depends(get_history_manager),
) -> dict[str, str]:
    result = await manager.save_incremental_edit(
        session_id, request.user_id, request.prompt, request.files, agent=request.agent
    )
    return {"project_id": result.project_id, "commit_id": result.commit_id}


@router.get("/files", response_model=FilesResponse)
async def session_files(
    session_id: str,
    user_id: str,
    manager: HistoryManager = Depends(get_history_manager),
) -> FilesResponse:
    return FilesResponse(items=await manager.get_session_files(session_id, user_id))


@router.get("/stats", response_model=StatsResponse)
async def session_stats(
    session_id: str,
    user_id: str,
    manager: HistoryManager = Depends(get_history_manager),
) -> StatsResponse:
    return stats_response(await manager.get_session_stats(session_id, user_id))


@router.get("/versions", response_model=VersionHistory)
async def list_versions(
    session_id: str,
    user_id: str,
    manager: HistoryManager = Depends(get_history_manager),
) -> VersionHistory:
    return await manager.list_versions(session_id, user_id)


@router.get("/versions/{label}/files", response_model=FilesResponse)
async def version_files(
    session_id: str,
    label: str,
    user_id: str,
    manager: HistoryManager = Depends(get_history_manager),
) -> FilesResponse:
    return FilesResponse(items=await manager.get_version_files(session_id, user_id, label))


@router.post("/deployment")
async def record_deployment(
    session_id: str,
    request: SessionDeploymentRequest,
    manager: HistoryManager = Depends(get_history_manager),
) -> dict[str, str | bool | None]:
    record = await manager.record_session_deployment(
        session_id, request.user_id, request.url, request.status
    )
    return {
        "recorded": record.recorded,
        "project_id": record.project_id,
        "commit_id": record.commit_id,
    }


@router.delete("/cache")
async def invalidate_cache(
    session_id: str, manager: HistoryManager = Depends(get_history_manager)
) -> dict[str, bool]:
    return {"invalidated": manager.invalidate_session(session_id)}
