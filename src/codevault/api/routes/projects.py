"""Project routes."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query, status

from codevault.api.deps import get_history_manager
from codevault.api.routes.common import stats_response
from codevault.api.schemas.projects import (
    CommitRequest,
    CommitsResponse,
    CreateProjectRequest,
    EventsResponse,
    FilesResponse,
    StatsResponse,
)
from codevault.core.history_manager import HistoryManager
from codevault.models.events import EventType
from codevault.models.project import Project, ProjectMeta

router = APIRouter(prefix="/api/v1/projects", tags=["projects"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_project(
    request: CreateProjectRequest,
    manager: HistoryManager = Depends(get_history_manager),
) -> dict[str, str]:
    created = await manager.create_project(
        request.session_id,
        request.user_id,
        ProjectMeta(
            name=request.name,
            description=request.description,
            framework=request.framework,
            template=request.template,
        ),
        request.files,
    )
    return {"project_id": created.project_id, "commit_id": created.commit_id}


@router.get("/{project_id}")
async def get_project(
    project_id: str, manager: HistoryManager = Depends(get_history_manager)
) -> dict[str, Project]:
    return {"project": await manager.get_project(project_id)}


@router.get("/{project_id}/files", response_model=FilesResponse)
async def list_files(
    project_id: str,
    as_of: datetime | None = None,
    manager: HistoryManager = Depends(get_history_manager),
) -> FilesResponse:
    if as_of is None:
        return FilesResponse(items=await manager.get_current_files(project_id))
    return FilesResponse(items=await manager.get_files_as_of(project_id, as_of))


@router.post("/{project_id}/commits", status_code=status.HTTP_201_CREATED)
async def create_commit(
    project_id: str,
    request: CommitRequest,
    manager: HistoryManager = Depends(get_history_manager),
) -> dict[str, str]:
    commit = await manager.commit_files(
        project_id,
        request.user_id,
        request.message,
        request.files,
        request.type,
        agent=request.agent,
        prompt=request.prompt,
    )
    return {"commit_id": commit.id}


@router.get("/{project_id}/commits", response_model=CommitsResponse)
async def list_commits(
    project_id: str,
    limit: int = Query(default=10, ge=1, le=500),
    manager: HistoryManager = Depends(get_history_manager),
) -> CommitsResponse:
    return CommitsResponse(items=await manager.list_commits(project_id, limit=limit))


@router.get("/{project_id}/stats", response_model=StatsResponse)
async def project_stats(
    project_id: str, manager: HistoryManager = Depends(get_history_manager)
) -> StatsResponse:
    return stats_response(await manager.project_stats(project_id))


@router.get("/{project_id}/events", response_model=EventsResponse)
async def list_events(
    project_id: str,
    event_type: EventType | None = None,
    since: datetime | None = None,
    until: datetime | None = None,
    manager: HistoryManager = Depends(get_history_manager),
) -> EventsResponse:
    events = await manager.list_events(
        project_id, event_type=event_type, since=since, until=until
    )
    return EventsResponse(items=events)


@router.post("/{project_id}/archive")
async def archive_project(
    project_id: str, manager: HistoryManager = Depends(get_history_manager)
) -> dict[str, Project]:
    return {"project": await manager.archive_project(project_id)}


@router.delete("/{project_id}")
async def delete_project(
    project_id: str, manager: HistoryManager = Depends(get_history_manager)
) -> dict[str, Project]:
    return {"project": await manager.delete_project(project_id)}
