from __future__ import annotations

from pathlib import Path

import pytest

from codevault.config import Settings
from codevault.core.history_manager import INCREMENTAL_AGENT, HistoryManager
from codevault.core.version_aggregator import DEFAULT_VERSION_WINDOW
from codevault.errors import ProjectNotFoundError
from codevault.models.commit import ChangeType, CommitType
from codevault.models.events import EventType
from codevault.models.project import ProjectMeta
from tests.support.history_helpers import changes, make_manager, make_store


@pytest.mark.asyncio
async def test_incremental_edit_creates_project_from_first_edit(tmp_path: Path) -> None:
    manager = make_manager(tmp_path)

    result = await manager.save_incremental_edit(
        "chat-1234abcd", "u1", "build a todo app", changes("app/page.tsx", "app/globals.css")
    )

    project = await manager.get_project(result.project_id)
    assert project.name == "Project_1234abcd"
    assert project.total_commits == 1
    assert project.total_files == 2
    assert project.latest_commit_id == result.commit_id
    commits = await manager.list_commits(result.project_id)
    assert commits[0].type is CommitType.INITIAL


@pytest.mark.asyncio
async def test_incremental_edit_appends_to_existing_project(tmp_path: Path) -> None:
    manager = make_manager(tmp_path)
    project_id = await manager.resolve_project_for_session("s1", "u1")
    prompt = "x" * 150

    result = await manager.save_incremental_edit("s1", "u1", prompt, changes("a.ts"))

    assert result.project_id == project_id
    commit = await manager.commits.get_commit(result.commit_id)
    assert commit is not None
    assert commit.type is CommitType.AI_EDIT
    assert commit.agent == "CodingAgent"
    assert commit.prompt == prompt
    assert commit.message == f"AI edit: {'x' * 100}..."


@pytest.mark.asyncio
async def test_incremental_edit_short_prompt_has_no_ellipsis(tmp_path: Path) -> None:
    manager = make_manager(tmp_path)
    await manager.resolve_project_for_session("s1", "u1")

    result = await manager.save_incremental_edit("s1", "u1", "make it blue", changes("a.css"))

    commit = await manager.commits.get_commit(result.commit_id)
    assert commit is not None
    assert commit.message == "AI edit: make it blue"


@pytest.mark.asyncio
async def test_add_files_to_session_project(tmp_path: Path) -> None:
    manager = make_manager(tmp_path)

    result = await manager.add_files_to_session_project("s1", "u1", changes("a.ts", "b.ts"))

    commit = await manager.commits.get_commit(result.commit_id)
    assert commit is not None
    assert commit.message == "Add 2 files incrementally"
    assert commit.agent == INCREMENTAL_AGENT
    files = await manager.get_session_files("s1", "u1")
    assert [record.filename for record in files] == ["a.ts", "b.ts"]


@pytest.mark.asyncio
async def test_project_stats(tmp_path: Path) -> None:
    manager = make_manager(tmp_path)
    created = await manager.create_project(
        "s1", "u1", ProjectMeta(name="demo"), changes("package.json", "src/App.tsx")
    )
    commit = await manager.commit_files(
        created.project_id,
        "u1",
        "drop config",
        changes("package.json", kind=ChangeType.DELETED) + changes("src/site.css"),
    )

    stats = await manager.get_session_stats("s1", "u1")

    assert stats.project_id == created.project_id
    assert stats.total_files == 2
    assert stats.total_commits == 2
    assert stats.latest_commit is not None
    assert stats.latest_commit.id == commit.id
    assert stats.file_types == {"component": 1, "styles": 1}
    assert stats.deployment_url is None


@pytest.mark.asyncio
async def test_list_commits_newest_first_with_limit(tmp_path: Path) -> None:
    manager = make_manager(tmp_path)
    created = await manager.create_project("s1", "u1", ProjectMeta(name="demo"))
    for index in range(3):
        await manager.commit_files(created.project_id, "u1", f"c{index}", changes(f"f{index}.ts"))

    commits = await manager.list_commits(created.project_id, limit=2)

    assert [commit.message for commit in commits] == ["c2", "c1"]
    everything = await manager.list_commits(created.project_id, limit=None)
    assert len(everything) == 4


@pytest.mark.asyncio
async def test_unknown_project_raises(tmp_path: Path) -> None:
    manager = make_manager(tmp_path)
    with pytest.raises(ProjectNotFoundError):
        await manager.project_stats("proj_missing")
    with pytest.raises(ProjectNotFoundError):
        await manager.list_events("proj_missing")


@pytest.mark.asyncio
async def test_session_deployment_targets_session_project(tmp_path: Path) -> None:
    manager = make_manager(tmp_path)
    added = await manager.add_files_to_session_project("s1", "u1", changes("a.ts"))

    record = await manager.record_session_deployment("s1", "u1", "https://s1.example.app")

    assert record.recorded is True
    assert record.commit_id == added.commit_id
    history = await manager.list_versions("s1", "u1")
    assert history.versions[0].is_deployed is True
    assert history.versions[0].deployment_url == "https://s1.example.app"


def test_from_settings_creates_database_directory(tmp_path: Path) -> None:
    settings = Settings(db_path=tmp_path / "nested" / "vault.db", version_window_seconds=30)

    manager = HistoryManager.from_settings(settings)

    assert (tmp_path / "nested").is_dir()
    assert manager.versions.window.total_seconds() == 30


@pytest.mark.asyncio
async def test_deleted_project_keeps_history_but_frees_session(tmp_path: Path) -> None:
    manager = make_manager(tmp_path)
    project_id = await manager.resolve_project_for_session("s1", "u1")
    await manager.add_files_to_session_project("s1", "u1", changes("a.ts"))

    deleted = await manager.delete_project(project_id)

    assert deleted.status.value == "deleted"
    assert manager.sessions.cached("s1") is None
    assert [r.filename for r in await manager.get_current_files(project_id)] == ["a.ts"]
    assert await manager.resolve_project_for_session("s1", "u1") != project_id
    events = await manager.list_events(project_id, event_type=EventType.PROJECT_STATUS_CHANGED)
    assert [event.payload["to"] for event in events] == ["deleted"]


def test_default_window_matches_aggregator_default(tmp_path: Path) -> None:
    manager = HistoryManager(make_store(tmp_path))

    assert manager.versions.window == DEFAULT_VERSION_WINDOW
