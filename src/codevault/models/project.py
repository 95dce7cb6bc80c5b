"""Project domain models."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, Field


class ProjectStatus(str, Enum):
    """Lifecycle status for a generated project."""

    ACTIVE = "active"
    ARCHIVED = "archived"
    DELETED = "deleted"


class DeploymentStatus(str, Enum):
    """Outcome reported by the deployment trigger."""

    DEPLOYED = "deployed"
    FAILED = "failed"


class ProjectMeta(BaseModel):
    """Caller-supplied descriptive fields for a new project."""

    name: str
    description: str | None = None
    framework: str = "next.js"
    template: str | None = None


class Project(BaseModel):
    """Persisted unit of ownership for a generated codebase."""

    id: str = Field(default_factory=lambda: f"proj_{uuid4().hex}")
    session_id: str
    user_id: str
    name: str
    description: str | None = None
    framework: str = "next.js"
    template: str | None = None
    status: ProjectStatus = ProjectStatus.ACTIVE
    total_files: int = 0
    total_commits: int = 0
    latest_commit_id: str | None = None
    deployment_url: str | None = None
    deployment_status: DeploymentStatus | None = None
    deployed_commit_id: str | None = None
    last_deployed_at: datetime | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
