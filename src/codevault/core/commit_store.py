"""Append-only commit creation."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime

from codevault.db.store import CommitBuilder, SQLiteStore
from codevault.models.commit import (
    ChangeType,
    Commit,
    CommitType,
    FileChange,
    FileRecord,
    FileType,
    infer_file_type,
    infer_language,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class PlannedRecord:
    """One file record a commit will write."""

    filename: str
    content: str
    language: str
    file_type: FileType
    change_type: ChangeType


@dataclass(slots=True)
class ChangePlan:
    """File records and per-kind counts for one commit."""

    records: list[PlannedRecord] = field(default_factory=list)
    added: int = 0
    modified: int = 0
    deleted: int = 0


def plan_changes(live: set[str], changes: Sequence[FileChange]) -> ChangePlan:
    """Normalize submitted changes against the files live before the commit.

    ``added`` on a live file is recorded as ``modified`` and ``modified`` on a
    missing file as ``added``. A ``renamed`` change with a live
    ``previous_filename`` also retires the old name with a ``deleted`` record.
    Counts satisfy ``live_after - live_before == added - deleted``.
    """
    _reject_duplicates(changes)
    live = set(live)
    plan = ChangePlan()

    for change in changes:
        name = change.filename
        kind = change.change_type

        if kind is ChangeType.DELETED:
            if name in live:
                live.discard(name)
                plan.deleted += 1
            plan.records.append(_planned(change, ChangeType.DELETED))
            continue

        old = change.previous_filename
        if kind is ChangeType.RENAMED and old and old != name and old in live:
            live.discard(old)
            plan.records.append(
                PlannedRecord(
                    filename=old,
                    content="",
                    language=infer_language(old),
                    file_type=infer_file_type(old),
                    change_type=ChangeType.DELETED,
                )
            )
            plan.modified += 1
            if name in live:
                plan.deleted += 1
            live.add(name)
            plan.records.append(_planned(change, ChangeType.RENAMED))
            continue

        if name in live:
            plan.modified += 1
            normalized = ChangeType.MODIFIED if kind is ChangeType.ADDED else kind
        else:
            plan.added += 1
            live.add(name)
            normalized = ChangeType.ADDED if kind is ChangeType.MODIFIED else kind
        plan.records.append(_planned(change, normalized))

    return plan


def _planned(change: FileChange, change_type: ChangeType) -> PlannedRecord:
    return PlannedRecord(
        filename=change.filename,
        content=change.content,
        language=change.resolved_language(),
        file_type=change.resolved_file_type(),
        change_type=change_type,
    )


def _reject_duplicates(changes: Sequence[FileChange]) -> None:
    seen: set[str] = set()
    for change in changes:
        names = [change.filename]
        if change.change_type is ChangeType.RENAMED and change.previous_filename:
            if change.previous_filename != change.filename:
                names.append(change.previous_filename)
        for name in names:
            if name in seen:
                msg = f"{name} is touched more than once in one commit"
                raise ValueError(msg)
            seen.add(name)


class CommitStore:
    """Create immutable commits and read commit history."""

    def __init__(self, store: SQLiteStore) -> None:
        self._store = store

    def builder(
        self,
        project_id: str,
        message: str,
        files: Sequence[FileChange],
        commit_type: CommitType,
        *,
        agent: str | None = None,
        prompt: str | None = None,
    ) -> CommitBuilder:
        """Return the row builder the store calls inside its write transaction."""
        _reject_duplicates(files)
        text = message.strip() or f"Update {len(files)} files"

        def build(timestamp: datetime, live: set[str]) -> tuple[Commit, list[FileRecord]]:
            plan = plan_changes(live, files)
            commit = Commit(
                project_id=project_id,
                message=text,
                type=commit_type,
                agent=agent,
                prompt=prompt,
                files_added=plan.added,
                files_modified=plan.modified,
                files_deleted=plan.deleted,
                created_at=timestamp,
            )
            records = [
                FileRecord(
                    project_id=project_id,
                    commit_id=commit.id,
                    filename=planned.filename,
                    content=planned.content,
                    language=planned.language,
                    file_type=planned.file_type,
                    change_type=planned.change_type,
                    created_at=timestamp,
                )
                for planned in plan.records
            ]
            return commit, records

        return build

    async def create_commit(
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
        build = self.builder(project_id, message, files, commit_type, agent=agent, prompt=prompt)
        commit = await self._store.append_commit(project_id, build, created_at=created_at)
        logger.info(
            "Commit %s on %s by %s: +%d ~%d -%d",
            commit.id,
            project_id,
            user_id,
            commit.files_added,
            commit.files_modified,
            commit.files_deleted,
        )
        return commit

    async def list_commits(
        self, project_id: str, *, limit: int | None = None, newest_first: bool = False
    ) -> list[Commit]:
        return await self._store.list_commits(project_id, limit=limit, newest_first=newest_first)

    async def get_commit(self, commit_id: str) -> Commit | None:
        return await self._store.get_commit(commit_id)
