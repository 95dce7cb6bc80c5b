from __future__ import annotations

from datetime import UTC, datetime, timedelta

from hypothesis import given
from hypothesis import strategies as st

from codevault.core.file_reconstructor import collapse_records, reconstruct_snapshots
from codevault.core.version_aggregator import group_commits
from codevault.models.commit import ChangeType, Commit, CommitType, FileRecord, FileType

BASE = datetime(2026, 1, 1, tzinfo=UTC)
WINDOW = timedelta(minutes=2)

_steps = st.lists(
    st.tuples(
        st.sampled_from(["a.ts", "b.ts", "c.css", "d.json"]),
        st.sampled_from([ChangeType.ADDED, ChangeType.MODIFIED, ChangeType.DELETED]),
        st.integers(min_value=0, max_value=3),
    ),
    max_size=30,
)


def _records(steps: list[tuple[str, ChangeType, int]]) -> list[FileRecord]:
    records: list[FileRecord] = []
    elapsed = 0
    for seq, (filename, change_type, gap) in enumerate(steps, start=1):
        elapsed += gap
        records.append(
            FileRecord(
                project_id="p1",
                commit_id=f"c{seq}",
                filename=filename,
                content=f"{filename}@{seq}",
                language="text",
                file_type=FileType.DATA,
                change_type=change_type,
                seq=seq,
                created_at=BASE + timedelta(seconds=elapsed),
            )
        )
    return records


@given(_steps)
def test_collapse_keeps_newest_live_record_per_file(
    steps: list[tuple[str, ChangeType, int]],
) -> None:
    records = _records(steps)

    collapsed = collapse_records(reversed(records))

    names = [record.filename for record in collapsed]
    assert names == sorted(set(names))
    newest: dict[str, FileRecord] = {}
    for record in records:
        newest[record.filename] = record
    expected = {
        name: record.content
        for name, record in newest.items()
        if record.change_type is not ChangeType.DELETED
    }
    assert {record.filename: record.content for record in collapsed} == expected


@given(_steps, st.lists(st.integers(min_value=0, max_value=100), max_size=6))
def test_snapshots_match_filtered_collapse(
    steps: list[tuple[str, ChangeType, int]], offsets: list[int]
) -> None:
    records = _records(steps)
    cutoffs = [BASE + timedelta(seconds=offset) for offset in offsets]

    snapshots = reconstruct_snapshots(records, cutoffs)

    for cutoff, snapshot in zip(cutoffs, snapshots, strict=True):
        expected = collapse_records(r for r in records if r.created_at <= cutoff)
        assert [r.id for r in snapshot] == [r.id for r in expected]


@given(st.lists(st.integers(min_value=0, max_value=400), max_size=20))
def test_grouping_splits_exactly_on_gaps_over_window(gaps: list[int]) -> None:
    commits: list[Commit] = []
    moment = BASE
    for index, gap in enumerate(gaps):
        moment += timedelta(seconds=gap)
        commits.append(
            Commit(project_id="p1", message=str(index), type=CommitType.AUTO, created_at=moment)
        )

    groups = group_commits(commits, WINDOW)

    assert [commit for group in groups for commit in group] == commits
    for group in groups:
        for earlier, later in zip(group, group[1:]):
            assert later.created_at - earlier.created_at <= WINDOW
    for previous, following in zip(groups, groups[1:]):
        assert following[0].created_at - previous[-1].created_at > WINDOW
