"""Deployment recording routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from codevault.api.deps import get_history_manager
from codevault.api.schemas.projects import DeploymentRequest
from codevault.core.history_manager import HistoryManager

router = APIRouter(prefix="/api/v1/projects/{project_id}/deployment", tags=["deploy"])


@router.post("")
async def record_deployment(
    project_id: str,
    request: DeploymentRequest,
    manager: HistoryManager = Depends(get_history_manager),
) -> dict[str, str | bool | None]:
    record = await manager.record_deployment(
        project_id, request.url, request.status, commit_id=request.commit_id
    )
    return {
        "recorded": record.recorded,
        "project_id": record.project_id,
        "url": record.url,
        "commit_id": record.commit_id,
        "message": record.message,
    }
