from __future__ import annotations

from pathlib import Path

import pytest

from codevault.models.project import DeploymentStatus, ProjectMeta
from tests.support.history_helpers import changes, make_manager


@pytest.mark.asyncio
async def test_unknown_project_is_reported_not_raised(tmp_path: Path) -> None:
    manager = make_manager(tmp_path)

    record = await manager.record_deployment("proj_missing", "https://x.example.app")

    assert record.recorded is False
    assert record.project_id == "proj_missing"
    assert "proj_missing" in record.message


@pytest.mark.asyncio
async def test_deployment_defaults_to_latest_commit(tmp_path: Path) -> None:
    manager = make_manager(tmp_path)
    created = await manager.create_project("s1", "u1", ProjectMeta(name="demo"))
    commit = await manager.commit_files(created.project_id, "u1", "add", changes("a.ts"))

    record = await manager.record_deployment(created.project_id, "https://demo.example.app")

    assert record.recorded is True
    assert record.commit_id == commit.id
    project = await manager.get_project(created.project_id)
    assert project.deployment_url == "https://demo.example.app"
    assert project.deployment_status is DeploymentStatus.DEPLOYED
    assert project.deployed_commit_id == commit.id
    assert project.last_deployed_at is not None


@pytest.mark.asyncio
async def test_foreign_commit_is_rejected(tmp_path: Path) -> None:
    manager = make_manager(tmp_path)
    mine = await manager.create_project("s1", "u1", ProjectMeta(name="mine"))
    other = await manager.create_project("s2", "u1", ProjectMeta(name="other"))

    record = await manager.record_deployment(
        mine.project_id, "https://x.example.app", commit_id=other.commit_id
    )

    assert record.recorded is False
    project = await manager.get_project(mine.project_id)
    assert project.deployment_url is None


@pytest.mark.asyncio
async def test_failed_deployment_does_not_mark_versions(tmp_path: Path) -> None:
    manager = make_manager(tmp_path)
    created = await manager.create_project("s1", "u1", ProjectMeta(name="demo"))

    record = await manager.record_deployment(
        created.project_id, "https://x.example.app", DeploymentStatus.FAILED
    )

    assert record.recorded is True
    history = await manager.versions.list_versions(created.project_id)
    assert not any(version.is_deployed for version in history.versions)


@pytest.mark.asyncio
async def test_recording_leaves_commit_history_alone(tmp_path: Path) -> None:
    manager = make_manager(tmp_path)
    created = await manager.create_project("s1", "u1", ProjectMeta(name="demo"))
    before = await manager.list_commits(created.project_id, limit=None)

    await manager.record_deployment(created.project_id, "https://x.example.app")

    after = await manager.list_commits(created.project_id, limit=None)
    assert [c.id for c in after] == [c.id for c in before]
    assert (await manager.get_project(created.project_id)).total_commits == 1
    events = await manager.list_events(created.project_id)
    assert [e.event_type.value for e in events][-1] == "deployment.recorded"
