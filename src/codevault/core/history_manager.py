"""Entry points used by the code generator and inspection tooling."""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from codevault.config import Settings
from codevault.core.commit_store import CommitStore
from codevault.core.deploy_recorder import DeploymentRecorder, DeployRecord
from codevault.core.file_reconstructor import FileReconstructor
from codevault.core.project_registry import CreatedProject, ProjectRegistry
from codevault.core.session_cache import SessionProjectCache
from codevault.core.version_aggregator import DEFAULT_VERSION_WINDOW, VersionAggregator
from codevault.db.store import SQLiteStore
from codevault.errors import ActiveProjectExistsError
from codevault.models.commit import Commit, CommitType, FileChange, FileRecord
from codevault.models.events import EventType, HistoryEvent
from codevault.models.project import DeploymentStatus, Project, ProjectMeta
from codevault.models.version import VersionHistory

logger = logging.getLogger(__name__)

INCREMENTAL_AGENT = "incremental-agent"
PROMPT_PREVIEW_LENGTH = 100


@dataclass(slots=True)
class SessionCommit:
    """Project and commit written on behalf of a session."""

    project_id: str
    commit_id: str


@dataclass(slots=True)
class ProjectStats:
    """Summary of one project's history."""

    project_id: str
    total_files: int
    total_commits: int
    latest_commit: Commit | None
    file_types: dict[str, int] = field(default_factory=dict)
    deployment_url: str | None = None
    last_deployed_at: datetime | None = None


class HistoryManager:
    """Compose the registry, commit store, reconstructor and aggregator."""

    def __init__(
        self,
        store: SQLiteStore,
        *,
        window: timedelta = DEFAULT_VERSION_WINDOW,
        default_framework: str = "next.js",
    ) -> None:
        self._store = store
        self.commits = CommitStore(store)
        self.registry = ProjectRegistry(store, self.commits)
        self.files = FileReconstructor(store)
        self.versions = VersionAggregator(store, self.files, window=window)
        self.sessions = SessionProjectCache(self.registry, default_framework=default_framework)
        self.deployments = DeploymentRecorder(self.registry)
        self._default_framework = default_framework

    @classmethod
    def from_settings(cls, settings: Settings) -> HistoryManager:
        settings.db_path.parent.mkdir(parents=True, exist_ok=True)
        store = SQLiteStore(
            settings.db_path,
            timeout=settings.store_timeout_seconds,
            read_retries=settings.read_retries,
        )
        return cls(
            store,
            window=timedelta(seconds=settings.version_window_seconds),
            default_framework=settings.default_framework,
        )

    # Project level

    async def create_project(
        self,
        session_id: str,
        user_id: str,
        meta: ProjectMeta,
        initial_files: Sequence[FileChange] = (),
        *,
        created_at: datetime | None = None,
    ) -> CreatedProject:
        return await self.registry.create_project(
            session_id, user_id, meta, initial_files, created_at=created_at
        )

    async def commit_files(
        self,
        project_id: str,
        user_id: str,
        message: str,
        files: Sequence[FileChange],
        commit_type: CommitType = CommitType.MANUAL,
        *,
        agent: str | None = None,
        prompt: str | None = None,
        created_at: datetime | None = None,
    ) -> Commit:
        return await self.commits.create_commit(
            project_id,
            user_id,
            message,
            files,
            commit_type,
            agent=agent,
            prompt=prompt,
            created_at=created_at,
        )

    async def get_project(self, project_id: str) -> Project:
        return await self.registry.require(project_id)

    async def get_current_files(self, project_id: str) -> list[FileRecord]:
        return await self.files.current_files(project_id)

    async def get_files_as_of(self, project_id: str, cutoff: datetime) -> list[FileRecord]:
        return await self.files.files_as_of(project_id, cutoff)

    async def list_commits(self, project_id: str, *, limit: int | None = 10) -> list[Commit]:
        await self.registry.require(project_id)
        return await self.commits.list_commits(project_id, limit=limit, newest_first=True)

    async def project_stats(self, project_id: str) -> ProjectStats:
        project = await self.registry.require(project_id)
        latest = await self.commits.list_commits(project_id, limit=1, newest_first=True)
        files = await self.files.current_files(project_id)
        return ProjectStats(
            project_id=project.id,
            total_files=project.total_files,
            total_commits=project.total_commits,
            latest_commit=latest[0] if latest else None,
            file_types=dict(Counter(record.file_type.value for record in files)),
            deployment_url=project.deployment_url,
            last_deployed_at=project.last_deployed_at,
        )

    async def archive_project(self, project_id: str) -> Project:
        project = await self.registry.archive(project_id)
        if self.sessions.cached(project.session_id) == project_id:
            self.sessions.invalidate(project.session_id)
        return project

    async def delete_project(self, project_id: str) -> Project:
        project = await self.registry.mark_deleted(project_id)
        if self.sessions.cached(project.session_id) == project_id:
            self.sessions.invalidate(project.session_id)
        return project

    async def record_deployment(
        self,
        project_id: str,
        url: str,
        status: DeploymentStatus = DeploymentStatus.DEPLOYED,
        *,
        commit_id: str | None = None,
    ) -> DeployRecord:
        return await self.deployments.record(project_id, url, status, commit_id=commit_id)

    async def list_events(
        self,
        project_id: str,
        *,
        event_type: EventType | None = None,
        since: datetime | None = None,
        until: datetime | None = None,
    ) -> list[HistoryEvent]:
        await self.registry.require(project_id)
        return await self._store.list_events(
            project_id=project_id, event_type=event_type, since=since, until=until
        )

    # Session level

    async def resolve_project_for_session(
        self, session_id: str, user_id: str, *, project_name: str | None = None
    ) -> str:
        return await self.sessions.resolve(session_id, user_id, project_name=project_name)

    def invalidate_session(self, session_id: str) -> bool:
        return self.sessions.invalidate(session_id)

    async def add_files_to_session_project(
        self,
        session_id: str,
        user_id: str,
        files: Sequence[FileChange],
        message: str | None = None,
        *,
        created_at: datetime | None = None,
    ) -> SessionCommit:
        project_id = await self.sessions.resolve(session_id, user_id)
        commit = await self.commits.create_commit(
            project_id,
            user_id,
            message or f"Add {len(files)} files incrementally",
            files,
            CommitType.AI_EDIT,
            agent=INCREMENTAL_AGENT,
            prompt="incremental file generation",
            created_at=created_at,
        )
        return SessionCommit(project_id=project_id, commit_id=commit.id)

    async def save_incremental_edit(
        self,
        session_id: str,
        user_id: str,
        prompt: str,
        files: Sequence[FileChange],
        *,
        agent: str = "CodingAgent",
        created_at: datetime | None = None,
    ) -> SessionCommit:
        """Append an AI edit, creating the project from these files when it has none."""
        project_id = self.sessions.cached(session_id)
        if project_id is None:
            existing = await self.registry.find_active_project_for_session(session_id, user_id)
            project_id = existing.id if existing else None

        if project_id is None:
            meta = ProjectMeta(
                name=f"Project_{session_id[-8:]}",
                description=f"AI generated project - {prompt[:50]}",
                framework=self._default_framework,
            )
            try:
                created = await self.registry.create_project(
                    session_id, user_id, meta, files, created_at=created_at
                )
            except ActiveProjectExistsError:
                project_id = await self.sessions.resolve(session_id, user_id)
            else:
                logger.info(
                    "Session %s started project %s from an AI edit", session_id, created.project_id
                )
                return SessionCommit(project_id=created.project_id, commit_id=created.commit_id)

        preview = prompt[:PROMPT_PREVIEW_LENGTH]
        if len(prompt) > PROMPT_PREVIEW_LENGTH:
            preview += "..."
        commit = await self.commits.create_commit(
            project_id,
            user_id,
            f"AI edit: {preview}",
            files,
            CommitType.AI_EDIT,
            agent=agent,
            prompt=prompt,
            created_at=created_at,
        )
        return SessionCommit(project_id=project_id, commit_id=commit.id)

    async def get_session_files(self, session_id: str, user_id: str) -> list[FileRecord]:
        project_id = await self.sessions.resolve(session_id, user_id)
        return await self.files.current_files(project_id)

    async def get_session_stats(self, session_id: str, user_id: str) -> ProjectStats:
        project_id = await self.sessions.resolve(session_id, user_id)
        return await self.project_stats(project_id)

    async def list_versions(self, session_id: str, user_id: str) -> VersionHistory:
        project_id = await self.sessions.resolve(session_id, user_id)
        return await self.versions.list_versions(project_id)

    async def get_version_files(
        self, session_id: str, user_id: str, version: str
    ) -> list[FileRecord]:
        project_id = await self.sessions.resolve(session_id, user_id)
        return await self.versions.files_for_version(project_id, version)

    async def record_session_deployment(
        self,
        session_id: str,
        user_id: str,
        url: str,
        status: DeploymentStatus = DeploymentStatus.DEPLOYED,
    ) -> DeployRecord:
        project_id = await self.sessions.resolve(session_id, user_id)
        return await self.deployments.record(project_id, url, status)
