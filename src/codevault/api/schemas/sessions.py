"""Session API schemas."""

from __future__ import annotations

from pydantic import BaseModel

from codevault.models.commit import FileChange
from codevault.models.project import DeploymentStatus


class ResolveProjectRequest(BaseModel):
    """Payload for resolving (or lazily creating) a session's project."""

    user_id: str
    project_name: str | None = None


class AddFilesRequest(BaseModel):
    """Incremental files produced by the generator."""

    user_id: str
    files: list[FileChange]
    message: str | None = None


class IncrementalEditRequest(BaseModel):
    """AI edit attributed to a user prompt."""

    user_id: str
    prompt: str
    files: list[FileChange]
    agent: str = "CodingAgent"


class SessionDeploymentRequest(BaseModel):
    """Deployment URL for the session's active project."""

    user_id: str
    url: str
    status: DeploymentStatus = DeploymentStatus.DEPLOYED
