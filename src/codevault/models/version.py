"""Derived, user-facing version models."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class CommitRef(BaseModel):
    """Short reference to a commit inside a version."""

    id: str
    message: str
    created_at: datetime


class Version(BaseModel):
    """A grouping of consecutive commits, computed on read."""

    label: str
    commit_id: str
    timestamp: datetime
    files_count: int
    file_types: list[str] = Field(default_factory=list)
    message: str
    touched_files: list[str] = Field(default_factory=list)
    commits: list[CommitRef] = Field(default_factory=list)
    is_deployed: bool = False
    deployment_url: str | None = None


class VersionHistory(BaseModel):
    """Versions of one project, newest first."""

    project_id: str
    versions: list[Version] = Field(default_factory=list)
    current_version: str

    def labels(self) -> list[str]:
        return [version.label for version in self.versions]

    def find(self, label: str) -> Version | None:
        wanted = label.strip().upper()
        for version in self.versions:
            if version.label == wanted:
                return version
        return None
