"""SQLite migrations for codevault storage."""

from __future__ import annotations

import aiosqlite

SCHEMA_VERSION = 1

_SCHEMA: tuple[str, ...] = (
    """
    CREATE TABLE IF NOT EXISTS schema_migrations (
        version INTEGER PRIMARY KEY
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS sessions (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        status TEXT NOT NULL,
        metadata TEXT NOT NULL,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS projects (
        id TEXT PRIMARY KEY,
        session_id TEXT NOT NULL,
        user_id TEXT NOT NULL,
        name TEXT NOT NULL,
        description TEXT,
        framework TEXT NOT NULL,
        template TEXT,
        status TEXT NOT NULL,
        total_files INTEGER NOT NULL DEFAULT 0,
        total_commits INTEGER NOT NULL DEFAULT 0,
        latest_commit_id TEXT,
        deployment_url TEXT,
        deployment_status TEXT,
        deployed_commit_id TEXT,
        last_deployed_at TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        FOREIGN KEY(session_id) REFERENCES sessions(id)
    )
    """,
    """
    CREATE UNIQUE INDEX IF NOT EXISTS projects_one_active_per_session
    ON projects(session_id) WHERE status = 'active'
    """,
    """
    CREATE TABLE IF NOT EXISTS commits (
        id TEXT PRIMARY KEY,
        project_id TEXT NOT NULL,
        message TEXT NOT NULL,
        type TEXT NOT NULL,
        agent TEXT,
        prompt TEXT,
        files_added INTEGER NOT NULL,
        files_modified INTEGER NOT NULL,
        files_deleted INTEGER NOT NULL,
        created_at TEXT NOT NULL,
        FOREIGN KEY(project_id) REFERENCES projects(id)
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS commits_by_project_time ON commits(project_id, created_at)
    """,
    """
    CREATE TABLE IF NOT EXISTS file_records (
        seq INTEGER PRIMARY KEY AUTOINCREMENT,
        id TEXT NOT NULL UNIQUE,
        project_id TEXT NOT NULL,
        commit_id TEXT NOT NULL,
        filename TEXT NOT NULL,
        content TEXT NOT NULL,
        language TEXT NOT NULL,
        file_type TEXT NOT NULL,
        change_type TEXT NOT NULL,
        created_at TEXT NOT NULL,
        FOREIGN KEY(project_id) REFERENCES projects(id),
        FOREIGN KEY(commit_id) REFERENCES commits(id)
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS file_records_by_project_time
    ON file_records(project_id, created_at, seq)
    """,
    """
    CREATE INDEX IF NOT EXISTS file_records_by_commit ON file_records(commit_id)
    """,
    """
    CREATE TABLE IF NOT EXISTS history_events (
        id TEXT PRIMARY KEY,
        project_id TEXT,
        event_type TEXT NOT NULL,
        payload TEXT NOT NULL,
        timestamp TEXT NOT NULL
    )
    """,
)


async def apply_migrations(conn: aiosqlite.Connection) -> None:
    """Create core schema if missing and set schema version.

    Expects an autocommit connection (``isolation_level=None``); the DDL runs
    inside one immediate transaction so concurrent first connections do not
    interleave.
    """
    if await _current_version(conn) == SCHEMA_VERSION:
        return

    await conn.execute("PRAGMA journal_mode = WAL")
    await conn.execute("BEGIN IMMEDIATE")
    try:
        for statement in _SCHEMA:
            await conn.execute(statement)
        await conn.execute("DELETE FROM schema_migrations")
        await conn.execute("INSERT INTO schema_migrations(version) VALUES (?)", (SCHEMA_VERSION,))
    except BaseException:
        await conn.execute("ROLLBACK")
        raise
    await conn.execute("COMMIT")


async def _current_version(conn: aiosqlite.Connection) -> int | None:
    cursor = await conn.execute(
        "SELECT name FROM sqlite_master WHERE type = 'table' AND name = 'schema_migrations'"
    )
    if await cursor.fetchone() is None:
        return None
    cursor = await conn.execute("SELECT MAX(version) FROM schema_migrations")
    row = await cursor.fetchone()
    return None if row is None else row[0]
