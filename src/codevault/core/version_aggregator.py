"""Group commit history into user-facing versions."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import timedelta
from pathlib import PurePosixPath

from codevault.core.file_reconstructor import FileReconstructor, reconstruct_snapshots
from codevault.db.store import SQLiteStore
from codevault.errors import ProjectNotFoundError, UnknownVersionError
from codevault.models.commit import Commit, CommitType, FileRecord
from codevault.models.project import DeploymentStatus, Project
from codevault.models.version import CommitRef, Version, VersionHistory

DEFAULT_VERSION_WINDOW = timedelta(minutes=2)

GROUPED_COMMIT_TYPES = frozenset({CommitType.AI_EDIT, CommitType.AUTO, CommitType.MANUAL})


def group_commits(commits: Sequence[Commit], window: timedelta) -> list[list[Commit]]:
    """Split chronologically ordered commits wherever the gap exceeds ``window``.

    A gap exactly equal to the window keeps the commit in the current group.
    """
    groups: list[list[Commit]] = []
    for commit in commits:
        if groups and commit.created_at - groups[-1][-1].created_at <= window:
            groups[-1].append(commit)
        else:
            groups.append([commit])
    return groups


def version_label(number: int) -> str:
    return f"V{number}"


def summarize(label: str, touched: Sequence[str], files_count: int) -> str:
    names = ", ".join(PurePosixPath(name).name for name in touched)
    if not touched:
        return f"{label}: no file changes ({files_count} files total)"
    verb = "batch update" if len(touched) > 1 else "update"
    return f"{label}: {verb} {names} ({files_count} files total)"


def _file_types(files: Sequence[FileRecord]) -> list[str]:
    return sorted({record.language or record.file_type.value for record in files})


def _touched(commits: Sequence[Commit], by_commit: dict[str, list[FileRecord]]) -> list[str]:
    names: list[str] = []
    for commit in commits:
        for record in by_commit.get(commit.id, []):
            if record.filename not in names:
                names.append(record.filename)
    return names


class VersionAggregator:
    """Compute versions on read from the commit stream of a project."""

    def __init__(
        self,
        store: SQLiteStore,
        files: FileReconstructor,
        *,
        window: timedelta = DEFAULT_VERSION_WINDOW,
    ) -> None:
        self._store = store
        self._files = files
        self._window = window

    @property
    def window(self) -> timedelta:
        return self._window

    async def list_versions(self, project_id: str) -> VersionHistory:
        project = await self._store.get_project(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        commits = await self._store.list_commits(project_id)
        records = await self._files.records(project_id)

        initial: Commit | None = None
        rest = list(commits)
        if rest and rest[0].type is CommitType.INITIAL:
            initial = rest.pop(0)
        groups = group_commits(
            [commit for commit in rest if commit.type in GROUPED_COMMIT_TYPES], self._window
        )
        if initial is not None:
            groups.insert(0, [initial])

        defining = [group[-1] for group in groups]
        snapshots = reconstruct_snapshots(records, [commit.created_at for commit in defining])
        by_commit: dict[str, list[FileRecord]] = {}
        for record in records:
            by_commit.setdefault(record.commit_id, []).append(record)

        versions: list[Version] = []
        for number, (group, head, files) in enumerate(
            zip(groups, defining, snapshots, strict=True), start=1
        ):
            label = version_label(number)
            touched = _touched(group, by_commit)
            if head.type is CommitType.INITIAL and number == 1:
                message = head.message
            else:
                message = summarize(label, touched, len(files))
            deployed = _is_deployed(project, head)
            versions.append(
                Version(
                    label=label,
                    commit_id=head.id,
                    timestamp=head.created_at,
                    files_count=len(files),
                    file_types=_file_types(files),
                    message=message,
                    touched_files=touched,
                    commits=[
                        CommitRef(
                            id=commit.id, message=commit.message, created_at=commit.created_at
                        )
                        for commit in group
                    ],
                    is_deployed=deployed,
                    deployment_url=project.deployment_url if deployed else None,
                )
            )

        versions.reverse()
        current = versions[0].label if versions else version_label(1)
        return VersionHistory(project_id=project_id, versions=versions, current_version=current)

    async def files_for_version(self, project_id: str, label: str) -> list[FileRecord]:
        history = await self.list_versions(project_id)
        version = history.find(label)
        if version is None:
            raise UnknownVersionError(label, history.labels())
        return await self._files.files_as_of(project_id, version.timestamp)


def _is_deployed(project: Project, head: Commit) -> bool:
    return (
        project.deployment_url is not None
        and project.deployment_status is DeploymentStatus.DEPLOYED
        and project.deployed_commit_id == head.id
    )
