from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest

from codevault.core.commit_store import CommitStore
from codevault.core.project_registry import INITIAL_COMMIT_MESSAGE, ProjectRegistry
from codevault.db.store import CommitBuilder, SQLiteStore
from codevault.errors import MissingSessionReferenceError
from codevault.models.commit import Commit
from codevault.models.events import EventType
from codevault.models.project import Project, ProjectMeta


class _VanishingSessionStore(SQLiteStore):
    """Reports every session as present so the insert hits the foreign key."""

    def __init__(self, db_path: Path, *, reseed: bool = True) -> None:
        super().__init__(db_path)
        self.reseed = reseed
        self.create_calls = 0

    async def session_exists(self, session_id: str) -> bool:
        return True

    async def create_placeholder_session(self, session_id: str, user_id: str) -> bool:
        if not self.reseed:
            return False
        return await super().create_placeholder_session(session_id, user_id)

    async def create_project(
        self,
        project: Project,
        build_initial: CommitBuilder,
        *,
        created_at: datetime | None = None,
    ) -> tuple[Project, Commit]:
        self.create_calls += 1
        return await super().create_project(project, build_initial, created_at=created_at)


def _registry(store: SQLiteStore) -> ProjectRegistry:
    return ProjectRegistry(store, CommitStore(store))


@pytest.mark.asyncio
async def test_create_project_seeds_placeholder_session(tmp_path: Path) -> None:
    store = SQLiteStore(tmp_path / "codevault.db")
    registry = _registry(store)

    created = await registry.create_project("s1", "u1", ProjectMeta(name="demo"))

    assert await store.session_exists("s1") is True
    assert created.project.total_commits == 1
    commit = await store.get_commit(created.commit_id)
    assert commit is not None
    assert commit.message == INITIAL_COMMIT_MESSAGE
    events = await store.list_events(event_type=EventType.SESSION_PLACEHOLDER_CREATED)
    assert len(events) == 1


@pytest.mark.asyncio
async def test_create_project_heals_missing_session_once(tmp_path: Path) -> None:
    store = _VanishingSessionStore(tmp_path / "codevault.db")
    registry = _registry(store)

    created = await registry.create_project("s1", "u1", ProjectMeta(name="demo"))

    assert store.create_calls == 2
    assert (await registry.require(created.project_id)).session_id == "s1"
    events = await store.list_events(event_type=EventType.SESSION_PLACEHOLDER_CREATED)
    assert [event.payload["session_id"] for event in events] == ["s1"]


@pytest.mark.asyncio
async def test_create_project_raises_when_healing_does_not_help(tmp_path: Path) -> None:
    store = _VanishingSessionStore(tmp_path / "codevault.db", reseed=False)
    registry = _registry(store)

    with pytest.raises(MissingSessionReferenceError):
        await registry.create_project("s1", "u1", ProjectMeta(name="demo"))

    assert store.create_calls == 2
    assert await registry.list_for_session("s1") == []
