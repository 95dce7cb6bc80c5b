"""Project API schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from codevault.models.commit import Commit, CommitType, FileChange, FileRecord
from codevault.models.events import HistoryEvent
from codevault.models.project import DeploymentStatus


class CreateProjectRequest(BaseModel):
    """Payload for creating a project bound to a session."""

    session_id: str
    user_id: str
    name: str
    description: str | None = None
    framework: str = "next.js"
    template: str | None = None
    files: list[FileChange] = Field(default_factory=list)


class CommitRequest(BaseModel):
    """Payload for appending a commit."""

    user_id: str
    message: str
    files: list[FileChange]
    type: CommitType = CommitType.MANUAL
    agent: str | None = None
    prompt: str | None = None


class DeploymentRequest(BaseModel):
    """Deployment result handed back by the deployment trigger."""

    url: str
    status: DeploymentStatus = DeploymentStatus.DEPLOYED
    commit_id: str | None = None


class FilesResponse(BaseModel):
    """Collection response for reconstructed files."""

    items: list[FileRecord]


class CommitsResponse(BaseModel):
    """Collection response for commits, newest first."""

    items: list[Commit]


class EventsResponse(BaseModel):
    """Collection response for audit events."""

    items: list[HistoryEvent]


class StatsResponse(BaseModel):
    """Project summary."""

    project_id: str
    total_files: int
    total_commits: int
    latest_commit: Commit | None = None
    file_types: dict[str, int] = Field(default_factory=dict)
    deployment_url: str | None = None
    last_deployed_at: datetime | None = None
