from __future__ import annotations

from datetime import datetime, timezone

import pytest

from domain import AgentRecord, BackupRecord, LabelUniverse, NodeIdentity, PBMConfig, PITRChunk, PITRLock, StatusSnapshot
from domain.models import parse_backup_timestamp


def test_backup_error_flag_is_exact_match() -> None:
    assert BackupRecord(name="2024-01-01T00:00:00Z", status="error").is_error
    assert not BackupRecord(name="2024-01-01T00:00:00Z", status="Error").is_error
    assert not BackupRecord(name="2024-01-01T00:00:00Z", status="done").is_error


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("2024-01-02T00:00:00Z", datetime(2024, 1, 2, tzinfo=timezone.utc)),
        ("2024-01-02T09:00:00+09:00", datetime(2024, 1, 2, tzinfo=timezone.utc)),
        ("2024-01-02T00:00:00", datetime(2024, 1, 2, tzinfo=timezone.utc)),
        ("nightly", None),
    ],
)
def test_parse_backup_timestamp(value: str, expected: datetime | None) -> None:
    assert parse_backup_timestamp(value) == expected


def test_backup_requires_name_and_status() -> None:
    with pytest.raises(ValueError):
        BackupRecord(name="", status="done")
    with pytest.raises(ValueError):
        BackupRecord(name="2024-01-01T00:00:00Z", status="")


def test_agent_status_requires_all_flags() -> None:
    healthy = AgentRecord(replica_set="rs0", node="db-0:27017", health={"pbms": True, "nodes": True, "stors": True})
    broken = AgentRecord(replica_set="rs0", node="db-1:27017", health={"pbms": True, "nodes": False, "stors": True})
    unknown = AgentRecord(replica_set="rs0", node="db-2:27017", health={})

    assert healthy.status == "ok"
    assert broken.status == "error"
    assert unknown.status == "error"
    assert healthy.host == "rs0/db-0:27017"
    assert healthy.identity == NodeIdentity(replica_set="rs0", host="rs0/db-0:27017")


def test_pitr_lock_staleness_boundary() -> None:
    lock = PITRLock(heartbeat=1_000)

    assert not lock.is_stale(1_030, grace_seconds=30)
    assert lock.is_stale(1_031, grace_seconds=30)


def test_pitr_chunk_rejects_inverted_range() -> None:
    with pytest.raises(ValueError):
        PITRChunk(start_ts=10, end_ts=5)


def test_last_pitr_chunk_uses_max_end_and_first_on_tie() -> None:
    first = PITRChunk(start_ts=100, end_ts=200)
    tied = PITRChunk(start_ts=150, end_ts=200)
    older = PITRChunk(start_ts=50, end_ts=120)
    snapshot = StatusSnapshot(config=PBMConfig(pitr_enabled=True), pitr_chunks=[older, first, tied])

    assert snapshot.last_pitr_chunk is first


def test_summary_describes_snapshot() -> None:
    snapshot = StatusSnapshot(
        config=PBMConfig(pitr_enabled=True),
        backups=[BackupRecord(name="2024-01-02T00:00:00Z", status="done")],
        agents=[AgentRecord(replica_set="rs0", node="a:1", health={"pbms": True})],
        pitr_lock=PITRLock(heartbeat=1_700_000_000),
        pitr_chunks_total=4,
        pitr_chunks=[PITRChunk(start_ts=1, end_ts=2)],
    )

    summary = snapshot.summary()

    assert summary["last_backup"] == {"name": "2024-01-02T00:00:00Z", "status": "done"}
    assert summary["agents"] == [{"rs": "rs0", "host": "rs0/a:1", "status": "ok"}]
    assert summary["pitr_heartbeat"] == 1_700_000_000
    assert summary["last_pitr_chunk_end"] == 2


def test_label_universe_lists_sorted_copies() -> None:
    universe = LabelUniverse()
    universe.add_status("running")
    universe.add_status("done")
    universe.add_status("done")
    universe.add_node(NodeIdentity(replica_set="rs1", host="rs1/b:1"))
    universe.add_node(NodeIdentity(replica_set="rs0", host="rs0/a:1"))

    statuses = universe.known_statuses()
    statuses.append("error")

    assert universe.known_statuses() == ["done", "running"]
    assert [node.host for node in universe.known_nodes()] == ["rs0/a:1", "rs1/b:1"]
