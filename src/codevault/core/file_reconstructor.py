"""Cumulative reconstruction of a project's file set."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime

from codevault.db.store import SQLiteStore, as_utc
from codevault.errors import ProjectNotFoundError
from codevault.models.commit import ChangeType, FileRecord


def _order_key(record: FileRecord) -> tuple[datetime, int]:
    return (record.created_at, record.seq)


def _live(latest: dict[str, FileRecord]) -> list[FileRecord]:
    return sorted(
        (record for record in latest.values() if record.change_type is not ChangeType.DELETED),
        key=lambda record: record.filename,
    )


def collapse_records(records: Iterable[FileRecord]) -> list[FileRecord]:
    """Keep the newest record per filename and drop filenames whose newest is a deletion."""
    latest: dict[str, FileRecord] = {}
    for record in records:
        current = latest.get(record.filename)
        if current is None or _order_key(record) >= _order_key(current):
            latest[record.filename] = record
    return _live(latest)


def reconstruct_snapshots(
    records: Sequence[FileRecord], cutoffs: Sequence[datetime]
) -> list[list[FileRecord]]:
    """Live file sets at each cutoff, computed in one pass over the records.

    Results are returned in the order of ``cutoffs``; the cutoffs themselves
    need not be sorted.
    """
    bounds = [as_utc(cutoff) for cutoff in cutoffs]
    ordered = sorted(records, key=_order_key)
    positions = sorted(range(len(bounds)), key=lambda index: bounds[index])
    snapshots: list[list[FileRecord]] = [[] for _ in bounds]
    latest: dict[str, FileRecord] = {}
    cursor = 0
    for index in positions:
        while cursor < len(ordered) and ordered[cursor].created_at <= bounds[index]:
            latest[ordered[cursor].filename] = ordered[cursor]
            cursor += 1
        snapshots[index] = _live(latest)
    return snapshots


class FileReconstructor:
    """Answer "which files did the project have at time T"."""

    def __init__(self, store: SQLiteStore) -> None:
        self._store = store

    async def current_files(self, project_id: str) -> list[FileRecord]:
        return collapse_records(await self.records(project_id))

    async def files_as_of(self, project_id: str, cutoff: datetime) -> list[FileRecord]:
        return collapse_records(await self.records(project_id, until=cutoff))

    async def records(self, project_id: str, *, until: datetime | None = None) -> list[FileRecord]:
        """Raw file records of a project in write order."""
        if await self._store.get_project(project_id) is None:
            raise ProjectNotFoundError(project_id)
        return await self._store.list_file_records(project_id, until=until)
