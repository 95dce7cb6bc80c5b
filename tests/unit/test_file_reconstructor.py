from __future__ import annotations

from datetime import timedelta
from pathlib import Path

import pytest

from codevault.core.file_reconstructor import collapse_records, reconstruct_snapshots
from codevault.errors import ProjectNotFoundError
from codevault.models.commit import ChangeType, FileRecord, FileType
from codevault.models.project import ProjectMeta
from tests.support.history_helpers import changes, future_base, make_manager

BASE = future_base()


def _record(name: str, seconds: int, kind: ChangeType, seq: int, content: str = "") -> FileRecord:
    return FileRecord(
        project_id="p1",
        commit_id=f"c{seq}",
        filename=name,
        content=content,
        language="typescript",
        file_type=FileType.COMPONENT,
        change_type=kind,
        seq=seq,
        created_at=BASE + timedelta(seconds=seconds),
    )


def test_collapse_keeps_latest_and_drops_deleted() -> None:
    records = [
        _record("a.ts", 0, ChangeType.ADDED, 1, "v1"),
        _record("b.ts", 0, ChangeType.ADDED, 2),
        _record("a.ts", 5, ChangeType.MODIFIED, 3, "v2"),
        _record("b.ts", 6, ChangeType.DELETED, 4),
        _record("c.ts", 7, ChangeType.RENAMED, 5, "moved"),
    ]

    live = collapse_records(reversed(records))

    assert [(r.filename, r.content) for r in live] == [("a.ts", "v2"), ("c.ts", "moved")]


def test_reconstruct_snapshots_accepts_unsorted_cutoffs() -> None:
    base = BASE
    records = [
        _record("a.ts", 0, ChangeType.ADDED, 1),
        _record("b.ts", 10, ChangeType.ADDED, 2),
    ]
    late, early = reconstruct_snapshots(
        records, [base + timedelta(seconds=20), base + timedelta(seconds=5)]
    )
    assert [r.filename for r in late] == ["a.ts", "b.ts"]
    assert [r.filename for r in early] == ["a.ts"]


@pytest.mark.asyncio
async def test_files_as_of_ignores_later_writes(tmp_path: Path) -> None:
    manager = make_manager(tmp_path)
    base = future_base()
    created = await manager.create_project("s1", "u1", ProjectMeta(name="demo"), created_at=base)
    project_id = created.project_id
    await manager.commit_files(
        project_id,
        "u1",
        "one",
        changes("a.ts", content="one"),
        created_at=base + timedelta(seconds=1),
    )
    cutoff = base + timedelta(seconds=2)

    before = await manager.get_files_as_of(project_id, cutoff)
    await manager.commit_files(
        project_id,
        "u1",
        "two",
        changes("a.ts", content="two"),
        created_at=base + timedelta(seconds=3),
    )
    after = await manager.get_files_as_of(project_id, cutoff)

    assert before == after
    assert [r.content for r in after] == ["one"]
    current = await manager.get_current_files(project_id)
    assert [(r.content, r.change_type) for r in current] == [("two", ChangeType.MODIFIED)]


@pytest.mark.asyncio
async def test_deleted_file_is_visible_only_before_deletion(tmp_path: Path) -> None:
    manager = make_manager(tmp_path)
    base = future_base()
    created = await manager.create_project("s1", "u1", ProjectMeta(name="demo"), created_at=base)
    project_id = created.project_id
    await manager.commit_files(
        project_id, "u1", "add", changes("a.ts", "b.ts"), created_at=base + timedelta(seconds=1)
    )
    await manager.commit_files(
        project_id,
        "u1",
        "drop",
        changes("a.ts", kind=ChangeType.DELETED),
        created_at=base + timedelta(seconds=2),
    )

    earlier = await manager.get_files_as_of(project_id, base + timedelta(seconds=1))
    assert [r.filename for r in earlier] == ["a.ts", "b.ts"]
    assert [r.filename for r in await manager.get_current_files(project_id)] == ["b.ts"]


@pytest.mark.asyncio
async def test_unknown_project_raises(tmp_path: Path) -> None:
    manager = make_manager(tmp_path)
    with pytest.raises(ProjectNotFoundError):
        await manager.get_current_files("missing")
