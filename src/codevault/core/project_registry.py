"""Project lifecycle management."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from codevault.core.commit_store import CommitStore
from codevault.db.store import SQLiteStore
from codevault.errors import (
    DeploymentRecordingError,
    MissingSessionReferenceError,
    ProjectNotFoundError,
    StoreUnavailableError,
)
from codevault.models.commit import CommitType, FileChange
from codevault.models.project import DeploymentStatus, Project, ProjectMeta, ProjectStatus

logger = logging.getLogger(__name__)

INITIAL_COMMIT_MESSAGE = "Initial commit - project created"


@dataclass(slots=True)
class CreatedProject:
    """Result of project creation."""

    project_id: str
    commit_id: str
    project: Project


class ProjectRegistry:
    """Create projects and manage project-level metadata."""

    def __init__(self, store: SQLiteStore, commits: CommitStore) -> None:
        self._store = store
        self._commits = commits

    async def create_project(
        self,
        session_id: str,
        user_id: str,
        meta: ProjectMeta,
        initial_files: Sequence[FileChange] = (),
        *,
        created_at: datetime | None = None,
    ) -> CreatedProject:
        await self._ensure_session(session_id, user_id)
        project = Project(
            session_id=session_id,
            user_id=user_id,
            name=meta.name,
            description=meta.description,
            framework=meta.framework,
            template=meta.template,
        )
        build = self._commits.builder(
            project.id, INITIAL_COMMIT_MESSAGE, initial_files, CommitType.INITIAL
        )
        try:
            stored, commit = await self._store.create_project(project, build, created_at=created_at)
        except MissingSessionReferenceError:
            logger.warning("Session %s vanished before project insert; reseeding", session_id)
            await self._store.create_placeholder_session(session_id, user_id)
            stored, commit = await self._store.create_project(project, build, created_at=created_at)

        logger.info(
            "Created project %s for session %s with %d initial files",
            stored.id,
            session_id,
            len(initial_files),
        )
        return CreatedProject(project_id=stored.id, commit_id=commit.id, project=stored)

    async def find_active_project_for_session(
        self, session_id: str, user_id: str | None = None
    ) -> Project | None:
        return await self._store.find_active_project(session_id, user_id)

    async def get(self, project_id: str) -> Project | None:
        return await self._store.get_project(project_id)

    async def require(self, project_id: str) -> Project:
        project = await self._store.get_project(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        return project

    async def list_for_session(self, session_id: str) -> list[Project]:
        return await self._store.list_session_projects(session_id)

    async def update_deployment(
        self,
        project_id: str,
        url: str,
        status: DeploymentStatus = DeploymentStatus.DEPLOYED,
        *,
        commit_id: str | None = None,
    ) -> Project:
        try:
            return await self._store.update_deployment(
                project_id, url, status, commit_id=commit_id
            )
        except StoreUnavailableError as exc:
            msg = f"Deployment for {project_id} not recorded: {exc}"
            raise DeploymentRecordingError(msg) from exc

    async def archive(self, project_id: str) -> Project:
        return await self._set_status(project_id, ProjectStatus.ARCHIVED)

    async def mark_deleted(self, project_id: str) -> Project:
        return await self._set_status(project_id, ProjectStatus.DELETED)

    async def _set_status(self, project_id: str, status: ProjectStatus) -> Project:
        project = await self._store.set_project_status(project_id, status)
        logger.info("Project %s is now %s", project_id, status.value)
        return project

    async def _ensure_session(self, session_id: str, user_id: str) -> None:
        if await self._store.session_exists(session_id):
            return
        if await self._store.create_placeholder_session(session_id, user_id):
            logger.info("Seeded placeholder session %s for user %s", session_id, user_id)
