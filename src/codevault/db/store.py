"""Async SQLite persistence for project history."""

from __future__ import annotations

import json
import logging
import sqlite3
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import TypeAlias, TypeVar

import aiosqlite

from codevault.db.migrations import apply_migrations
from codevault.errors import (
    ActiveProjectExistsError,
    MissingSessionReferenceError,
    ProjectNotFoundError,
    StoreUnavailableError,
)
from codevault.models.commit import ChangeType, Commit, CommitType, FileRecord, FileType
from codevault.models.events import EventType, HistoryEvent
from codevault.models.project import DeploymentStatus, Project, ProjectStatus

logger = logging.getLogger(__name__)

# Builds the rows of one commit from its final timestamp and the filenames
# that are live immediately before it.
CommitBuilder: TypeAlias = Callable[[datetime, set[str]], tuple[Commit, list[FileRecord]]]

T = TypeVar("T")

_TICK = timedelta(microseconds=1)


def as_utc(value: datetime) -> datetime:
    """Treat naive timestamps as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def to_db_time(value: datetime) -> str:
    """Render a timestamp in the fixed-width UTC form used for range queries."""
    return as_utc(value).isoformat(timespec="microseconds")


def _from_db_time(value: object) -> datetime:
    return datetime.fromisoformat(str(value))


class SQLiteStore:
    """Data access layer for sessions, projects, commits and file records.

    Every write runs in one ``BEGIN IMMEDIATE`` transaction, which takes the
    database write lock up front; concurrent writers queue on the busy
    timeout instead of interleaving their read-modify-write of counters.
    """

    def __init__(self, db_path: Path, *, timeout: float = 5.0, read_retries: int = 1) -> None:
        self._db_path = db_path
        self._timeout = timeout
        self._read_retries = read_retries

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[aiosqlite.Connection]:
        try:
            conn = await aiosqlite.connect(
                self._db_path, timeout=self._timeout, isolation_level=None
            )
        except sqlite3.Error as exc:
            msg = f"Backing store unavailable: {exc}"
            raise StoreUnavailableError(msg) from exc
        conn.row_factory = aiosqlite.Row
        try:
            await conn.execute("PRAGMA foreign_keys = ON")
            await apply_migrations(conn)
            yield conn
        except sqlite3.IntegrityError:
            raise
        except sqlite3.DatabaseError as exc:
            msg = f"Backing store unavailable: {exc}"
            raise StoreUnavailableError(msg) from exc
        finally:
            await conn.close()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        async with self.connection() as conn:
            await conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                await conn.execute("ROLLBACK")
                raise
            await conn.execute("COMMIT")

    async def _read(self, operation: Callable[[aiosqlite.Connection], Awaitable[T]]) -> T:
        attempt = 0
        while True:
            try:
                async with self.connection() as conn:
                    return await operation(conn)
            except StoreUnavailableError:
                if attempt >= self._read_retries:
                    raise
                attempt += 1
                logger.warning("Read against %s failed, retrying (%d)", self._db_path, attempt)

    # Sessions

    async def session_exists(self, session_id: str) -> bool:
        async def op(conn: aiosqlite.Connection) -> bool:
            cursor = await conn.execute("SELECT 1 FROM sessions WHERE id = ?", (session_id,))
            return await cursor.fetchone() is not None

        return await self._read(op)

    async def create_placeholder_session(self, session_id: str, user_id: str) -> bool:
        """Insert a minimal session row; returns False when one already exists."""
        now = datetime.now(UTC)
        async with self.transaction() as conn:
            cursor = await conn.execute(
                """
                INSERT OR IGNORE INTO sessions(id, user_id, status, metadata, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    session_id,
                    user_id,
                    "active",
                    json.dumps({"source": "project_creation"}),
                    to_db_time(now),
                ),
            )
            created = cursor.rowcount == 1
            if created:
                await self._insert_event(
                    conn,
                    HistoryEvent(
                        event_type=EventType.SESSION_PLACEHOLDER_CREATED,
                        payload={"session_id": session_id, "user_id": user_id},
                        timestamp=now,
                    ),
                )
        return created

    # Projects

    async def create_project(
        self,
        project: Project,
        build_initial: CommitBuilder,
        *,
        created_at: datetime | None = None,
    ) -> tuple[Project, Commit]:
        """Insert a project together with its initial commit."""
        try:
            async with self.transaction() as conn:
                await conn.execute(
                    """
                    INSERT INTO projects(
                        id,
                        session_id,
                        user_id,
                        name,
                        description,
                        framework,
                        template,
                        status,
                        total_files,
                        total_commits,
                        created_at,
                        updated_at
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, 0, 0, ?, ?)
                    """,
                    (
                        project.id,
                        project.session_id,
                        project.user_id,
                        project.name,
                        project.description,
                        project.framework,
                        project.template,
                        project.status.value,
                        to_db_time(project.created_at),
                        to_db_time(project.updated_at),
                    ),
                )
                await self._insert_event(
                    conn,
                    HistoryEvent(
                        project_id=project.id,
                        event_type=EventType.PROJECT_CREATED,
                        payload={"name": project.name, "session_id": project.session_id},
                    ),
                )
                commit = await self._write_commit(conn, project.id, build_initial, created_at)
                stored = await self._require_project(conn, project.id)
        except sqlite3.IntegrityError as exc:
            reason = str(exc)
            if "FOREIGN KEY" in reason:
                raise MissingSessionReferenceError(project.session_id) from exc
            if "UNIQUE" in reason:
                raise ActiveProjectExistsError(project.session_id) from exc
            raise
        return stored, commit

    async def get_project(self, project_id: str) -> Project | None:
        async def op(conn: aiosqlite.Connection) -> Project | None:
            return await self._fetch_project(conn, project_id)

        return await self._read(op)

    async def find_active_project(
        self, session_id: str, user_id: str | None = None
    ) -> Project | None:
        query = "SELECT * FROM projects WHERE session_id = ? AND status = ?"
        params: list[str] = [session_id, ProjectStatus.ACTIVE.value]
        if user_id is not None:
            query += " AND user_id = ?"
            params.append(user_id)
        query += " ORDER BY created_at DESC LIMIT 1"

        async def op(conn: aiosqlite.Connection) -> Project | None:
            cursor = await conn.execute(query, tuple(params))
            row = await cursor.fetchone()
            return None if row is None else self._project_from_row(row)

        return await self._read(op)

    async def list_session_projects(self, session_id: str) -> list[Project]:
        async def op(conn: aiosqlite.Connection) -> list[Project]:
            cursor = await conn.execute(
                "SELECT * FROM projects WHERE session_id = ? ORDER BY created_at ASC",
                (session_id,),
            )
            return [self._project_from_row(row) for row in await cursor.fetchall()]

        return await self._read(op)

    async def update_deployment(
        self,
        project_id: str,
        url: str,
        status: DeploymentStatus,
        *,
        commit_id: str | None = None,
    ) -> Project:
        """Record deployment metadata against a commit (default: the latest one)."""
        now = datetime.now(UTC)
        async with self.transaction() as conn:
            project = await self._require_project(conn, project_id)
            if commit_id is not None:
                cursor = await conn.execute(
                    "SELECT 1 FROM commits WHERE id = ? AND project_id = ?",
                    (commit_id, project_id),
                )
                if await cursor.fetchone() is None:
                    msg = f"Commit {commit_id} does not belong to project {project_id}"
                    raise ValueError(msg)
            deployed_commit_id = commit_id or project.latest_commit_id
            await conn.execute(
                """
                UPDATE projects SET
                    deployment_url = ?,
                    deployment_status = ?,
                    deployed_commit_id = ?,
                    last_deployed_at = ?,
                    updated_at = ?
                WHERE id = ?
                """,
                (
                    url,
                    status.value,
                    deployed_commit_id,
                    to_db_time(now),
                    to_db_time(now),
                    project_id,
                ),
            )
            await self._insert_event(
                conn,
                HistoryEvent(
                    project_id=project_id,
                    event_type=EventType.DEPLOYMENT_RECORDED,
                    payload={
                        "url": url,
                        "status": status.value,
                        "commit_id": deployed_commit_id,
                    },
                    timestamp=now,
                ),
            )
            return await self._require_project(conn, project_id)

    async def set_project_status(self, project_id: str, status: ProjectStatus) -> Project:
        now = datetime.now(UTC)
        async with self.transaction() as conn:
            project = await self._require_project(conn, project_id)
            await conn.execute(
                "UPDATE projects SET status = ?, updated_at = ? WHERE id = ?",
                (status.value, to_db_time(now), project_id),
            )
            await self._insert_event(
                conn,
                HistoryEvent(
                    project_id=project_id,
                    event_type=EventType.PROJECT_STATUS_CHANGED,
                    payload={"from": project.status.value, "to": status.value},
                    timestamp=now,
                ),
            )
            return await self._require_project(conn, project_id)

    # Commits

    async def append_commit(
        self,
        project_id: str,
        build: CommitBuilder,
        *,
        created_at: datetime | None = None,
    ) -> Commit:
        """Write one commit, its file records and the counter update atomically."""
        async with self.transaction() as conn:
            cursor = await conn.execute("SELECT 1 FROM projects WHERE id = ?", (project_id,))
            if await cursor.fetchone() is None:
                raise ProjectNotFoundError(project_id)
            return await self._write_commit(conn, project_id, build, created_at)

    async def list_commits(
        self,
        project_id: str,
        *,
        limit: int | None = None,
        newest_first: bool = False,
    ) -> list[Commit]:
        order = "DESC" if newest_first else "ASC"
        query = f"SELECT * FROM commits WHERE project_id = ? ORDER BY created_at {order}"
        params: list[str | int] = [project_id]
        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)

        async def op(conn: aiosqlite.Connection) -> list[Commit]:
            cursor = await conn.execute(query, tuple(params))
            return [self._commit_from_row(row) for row in await cursor.fetchall()]

        return await self._read(op)

    async def get_commit(self, commit_id: str) -> Commit | None:
        async def op(conn: aiosqlite.Connection) -> Commit | None:
            cursor = await conn.execute("SELECT * FROM commits WHERE id = ?", (commit_id,))
            row = await cursor.fetchone()
            return None if row is None else self._commit_from_row(row)

        return await self._read(op)

    # File records

    async def list_file_records(
        self, project_id: str, *, until: datetime | None = None
    ) -> list[FileRecord]:
        """File records of a project in write order, optionally up to a cutoff."""
        query = "SELECT * FROM file_records WHERE project_id = ?"
        params: list[str] = [project_id]
        if until is not None:
            query += " AND created_at <= ?"
            params.append(to_db_time(until))
        query += " ORDER BY created_at ASC, seq ASC"

        async def op(conn: aiosqlite.Connection) -> list[FileRecord]:
            cursor = await conn.execute(query, tuple(params))
            return [self._file_record_from_row(row) for row in await cursor.fetchall()]

        return await self._read(op)

    async def list_commit_files(self, commit_id: str) -> list[FileRecord]:
        async def op(conn: aiosqlite.Connection) -> list[FileRecord]:
            cursor = await conn.execute(
                "SELECT * FROM file_records WHERE commit_id = ? ORDER BY seq ASC",
                (commit_id,),
            )
            return [self._file_record_from_row(row) for row in await cursor.fetchall()]

        return await self._read(op)

    # Events

    async def list_events(
        self,
        *,
        project_id: str | None = None,
        event_type: EventType | None = None,
        since: datetime | None = None,
        until: datetime | None = None,
    ) -> list[HistoryEvent]:
        query = "SELECT * FROM history_events WHERE 1 = 1"
        params: list[str] = []

        if project_id:
            query += " AND project_id = ?"
            params.append(project_id)

        if event_type:
            query += " AND event_type = ?"
            params.append(event_type.value)

        if since:
            query += " AND timestamp >= ?"
            params.append(to_db_time(since))

        if until:
            query += " AND timestamp <= ?"
            params.append(to_db_time(until))

        query += " ORDER BY timestamp ASC"

        async def op(conn: aiosqlite.Connection) -> list[HistoryEvent]:
            cursor = await conn.execute(query, tuple(params))
            return [self._event_from_row(row) for row in await cursor.fetchall()]

        return await self._read(op)

    # Internals, all called with an open transaction

    async def _write_commit(
        self,
        conn: aiosqlite.Connection,
        project_id: str,
        build: CommitBuilder,
        requested_at: datetime | None,
    ) -> Commit:
        timestamp = as_utc(requested_at) if requested_at else datetime.now(UTC)
        cursor = await conn.execute(
            "SELECT MAX(created_at) FROM commits WHERE project_id = ?", (project_id,)
        )
        row = await cursor.fetchone()
        if row is not None and row[0] is not None:
            previous = _from_db_time(row[0])
            if timestamp <= previous:
                timestamp = previous + _TICK

        live = await self._live_filenames(conn, project_id)
        commit, records = build(timestamp, live)

        await conn.execute(
            """
            INSERT INTO commits(
                id,
                project_id,
                message,
                type,
                agent,
                prompt,
                files_added,
                files_modified,
                files_deleted,
                created_at
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                commit.id,
                project_id,
                commit.message,
                commit.type.value,
                commit.agent,
                commit.prompt,
                commit.files_added,
                commit.files_modified,
                commit.files_deleted,
                to_db_time(commit.created_at),
            ),
        )
        await conn.executemany(
            """
            INSERT INTO file_records(
                id,
                project_id,
                commit_id,
                filename,
                content,
                language,
                file_type,
                change_type,
                created_at
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (
                    record.id,
                    project_id,
                    commit.id,
                    record.filename,
                    record.content,
                    record.language,
                    record.file_type.value,
                    record.change_type.value,
                    to_db_time(record.created_at),
                )
                for record in records
            ],
        )
        await conn.execute(
            """
            UPDATE projects SET
                total_commits = total_commits + 1,
                total_files = total_files + ?,
                latest_commit_id = ?,
                updated_at = ?
            WHERE id = ?
            """,
            (
                commit.files_added - commit.files_deleted,
                commit.id,
                to_db_time(commit.created_at),
                project_id,
            ),
        )
        await self._insert_event(
            conn,
            HistoryEvent(
                project_id=project_id,
                event_type=EventType.COMMIT_CREATED,
                payload={
                    "commit_id": commit.id,
                    "type": commit.type.value,
                    "files": len(records),
                },
                timestamp=commit.created_at,
            ),
        )
        return commit

    @staticmethod
    async def _live_filenames(conn: aiosqlite.Connection, project_id: str) -> set[str]:
        cursor = await conn.execute(
            """
            SELECT filename, change_type FROM file_records
            WHERE project_id = ?
            ORDER BY created_at ASC, seq ASC
            """,
            (project_id,),
        )
        latest: dict[str, str] = {}
        for row in await cursor.fetchall():
            latest[str(row["filename"])] = str(row["change_type"])
        return {name for name, kind in latest.items() if kind != ChangeType.DELETED.value}

    async def _fetch_project(self, conn: aiosqlite.Connection, project_id: str) -> Project | None:
        cursor = await conn.execute("SELECT * FROM projects WHERE id = ?", (project_id,))
        row = await cursor.fetchone()
        return None if row is None else self._project_from_row(row)

    async def _require_project(self, conn: aiosqlite.Connection, project_id: str) -> Project:
        project = await self._fetch_project(conn, project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        return project

    @staticmethod
    async def _insert_event(conn: aiosqlite.Connection, event: HistoryEvent) -> None:
        await conn.execute(
            """
            INSERT INTO history_events(id, project_id, event_type, payload, timestamp)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                event.id,
                event.project_id,
                event.event_type.value,
                json.dumps(event.payload),
                to_db_time(event.timestamp),
            ),
        )

    @staticmethod
    def _project_from_row(row: aiosqlite.Row) -> Project:
        return Project(
            id=str(row["id"]),
            session_id=str(row["session_id"]),
            user_id=str(row["user_id"]),
            name=str(row["name"]),
            description=row["description"],
            framework=str(row["framework"]),
            template=row["template"],
            status=ProjectStatus(str(row["status"])),
            total_files=int(row["total_files"]),
            total_commits=int(row["total_commits"]),
            latest_commit_id=row["latest_commit_id"],
            deployment_url=row["deployment_url"],
            deployment_status=(
                DeploymentStatus(str(row["deployment_status"]))
                if row["deployment_status"]
                else None
            ),
            deployed_commit_id=row["deployed_commit_id"],
            last_deployed_at=(
                _from_db_time(row["last_deployed_at"]) if row["last_deployed_at"] else None
            ),
            created_at=_from_db_time(row["created_at"]),
            updated_at=_from_db_time(row["updated_at"]),
        )

    @staticmethod
    def _commit_from_row(row: aiosqlite.Row) -> Commit:
        return Commit(
            id=str(row["id"]),
            project_id=str(row["project_id"]),
            message=str(row["message"]),
            type=CommitType(str(row["type"])),
            agent=row["agent"],
            prompt=row["prompt"],
            files_added=int(row["files_added"]),
            files_modified=int(row["files_modified"]),
            files_deleted=int(row["files_deleted"]),
            created_at=_from_db_time(row["created_at"]),
        )

    @staticmethod
    def _file_record_from_row(row: aiosqlite.Row) -> FileRecord:
        return FileRecord(
            id=str(row["id"]),
            project_id=str(row["project_id"]),
            commit_id=str(row["commit_id"]),
            filename=str(row["filename"]),
            content=str(row["content"]),
            language=str(row["language"]),
            file_type=FileType(str(row["file_type"])),
            change_type=ChangeType(str(row["change_type"])),
            seq=int(row["seq"]),
            created_at=_from_db_time(row["created_at"]),
        )

    @staticmethod
    def _event_from_row(row: aiosqlite.Row) -> HistoryEvent:
        return HistoryEvent(
            id=str(row["id"]),
            project_id=row["project_id"],
            event_type=EventType(str(row["event_type"])),
            payload=json.loads(str(row["payload"])),
            timestamp=_from_db_time(row["timestamp"]),
        )
