"""Tests for the in-memory and JSONL event logs."""

import json
import threading
from datetime import UTC, datetime, timedelta

import pytest

from agentledger.domain.events import StoredEvent
from agentledger.domain.exceptions import StorageUnavailable
from agentledger.infrastructure.persistence import FilesystemEventLog, InMemoryEventLog

T0 = datetime(2026, 1, 5, 12, 0, 0, tzinfo=UTC)


def stored(
    event_id: str,
    event_type: str = "IntentDeclared",
    entity_id: str | None = "exec-1",
    seconds: int = 0,
    **payload,
) -> StoredEvent:
    return StoredEvent(
        event_id=event_id,
        event_type=event_type,
        entity_id=entity_id,
        payload=payload,
        created_at=T0 + timedelta(seconds=seconds),
    )


@pytest.fixture(params=["memory", "filesystem"])
def log(request, tmp_path):  # noqa: ANN001
    """Each test runs against both log implementations."""
    if request.param == "memory":
        return InMemoryEventLog()
    return FilesystemEventLog(tmp_path / "ledger")


class TestAppend:
    """Tests for append() and position()."""

    def test_returns_event_id(self, log) -> None:  # noqa: ANN001
        assert log.append(stored("evt-1")) == "evt-1"

    def test_assigns_increasing_sequence(self, log) -> None:  # noqa: ANN001
        log.append(stored("evt-1"))
        log.append(stored("evt-2", entity_id="exec-2"))
        log.append(stored("evt-3"))

        assert [e.sequence for e in log.all_events()] == [1, 2, 3]
        assert log.position() == 3

    def test_empty_log_position(self, log) -> None:  # noqa: ANN001
        assert log.position() == 0
        assert log.all_events() == []

    def test_clamps_created_at_to_non_decreasing(self, log) -> None:  # noqa: ANN001
        """An event stamped before its predecessor is recorded at the same instant."""
        log.append(stored("evt-1", seconds=10))
        log.append(stored("evt-2", seconds=5))

        events = log.all_events()
        assert events[1].created_at == events[0].created_at

    def test_events_without_entity(self, log) -> None:  # noqa: ANN001
        log.append(stored("evt-1", event_type="StopSignalSent", entity_id=None))

        assert log.query_by_type("StopSignalSent")[0].entity_id is None


class TestQueryByEntity:
    """Tests for query_by_entity()."""

    def test_append_order(self, log) -> None:  # noqa: ANN001
        log.append(stored("evt-1"))
        log.append(stored("evt-2", entity_id="exec-2"))
        log.append(stored("evt-3", event_type="AttemptStarted"))

        assert [e.event_id for e in log.query_by_entity("exec-1")] == ["evt-1", "evt-3"]

    def test_unknown_entity(self, log) -> None:  # noqa: ANN001
        assert log.query_by_entity("exec-404") == []

    def test_repeatable(self, log) -> None:  # noqa: ANN001
        log.append(stored("evt-1"))

        assert log.query_by_entity("exec-1") == log.query_by_entity("exec-1")


class TestQueryByType:
    """Tests for query_by_type()."""

    def test_newest_first(self, log) -> None:  # noqa: ANN001
        log.append(stored("evt-1", entity_id="exec-1", seconds=0))
        log.append(stored("evt-2", entity_id="exec-2", seconds=1))
        log.append(stored("evt-3", event_type="AttemptStarted", seconds=2))

        assert [e.event_id for e in log.query_by_type("IntentDeclared")] == [
            "evt-2",
            "evt-1",
        ]

    def test_ties_broken_by_sequence(self, log) -> None:  # noqa: ANN001
        log.append(stored("evt-1", entity_id="exec-1"))
        log.append(stored("evt-2", entity_id="exec-2"))

        assert [e.event_id for e in log.query_by_type("IntentDeclared")] == [
            "evt-2",
            "evt-1",
        ]

    def test_payload_filters(self, log) -> None:  # noqa: ANN001
        log.append(stored("evt-1", entity_id="exec-1", agent_id="lint-agent"))
        log.append(stored("evt-2", entity_id="exec-2", agent_id="test-agent"))

        found = log.query_by_type("IntentDeclared", filters={"agent_id": "lint-agent"})

        assert [e.event_id for e in found] == ["evt-1"]

    def test_time_range_is_inclusive(self, log) -> None:  # noqa: ANN001
        for i in range(5):
            log.append(stored(f"evt-{i}", entity_id=f"exec-{i}", seconds=i * 10))

        found = log.query_by_type(
            "IntentDeclared",
            since=T0 + timedelta(seconds=10),
            until=T0 + timedelta(seconds=30),
        )

        assert [e.event_id for e in found] == ["evt-3", "evt-2", "evt-1"]

    def test_limit(self, log) -> None:  # noqa: ANN001
        for i in range(5):
            log.append(stored(f"evt-{i}", entity_id=f"exec-{i}", seconds=i))

        found = log.query_by_type("IntentDeclared", limit=2)

        assert [e.event_id for e in found] == ["evt-4", "evt-3"]

    def test_unknown_type(self, log) -> None:  # noqa: ANN001
        log.append(stored("evt-1"))

        assert log.query_by_type("AgentPaused") == []


class TestFilesystemEventLog:
    """Tests specific to the JSONL log."""

    def test_creates_directory(self, tmp_path) -> None:  # noqa: ANN001
        FilesystemEventLog(tmp_path / "a" / "b")

        assert (tmp_path / "a" / "b").is_dir()

    def test_one_json_object_per_line(self, tmp_path) -> None:  # noqa: ANN001
        log = FilesystemEventLog(tmp_path)
        log.append(stored("evt-1", intent="Fix linting errors"))
        log.append(stored("evt-2", entity_id="exec-2"))

        lines = (tmp_path / "events.jsonl").read_text().splitlines()

        assert len(lines) == 2
        first = json.loads(lines[0])
        assert first["event_id"] == "evt-1"
        assert first["payload"] == {"intent": "Fix linting errors"}
        assert first["sequence"] == 1

    def test_reopen_continues_sequence(self, tmp_path) -> None:  # noqa: ANN001
        """A new instance over the same directory sees earlier events."""
        FilesystemEventLog(tmp_path).append(stored("evt-1", seconds=10))

        reopened = FilesystemEventLog(tmp_path)
        reopened.append(stored("evt-2", seconds=0))

        events = reopened.all_events()
        assert [e.sequence for e in events] == [1, 2]
        assert events[1].created_at == T0 + timedelta(seconds=10)
        assert events[0].created_at.tzinfo is not None

    def test_corrupt_line_raises(self, tmp_path) -> None:  # noqa: ANN001
        log = FilesystemEventLog(tmp_path)
        log.append(stored("evt-1"))
        with open(tmp_path / "events.jsonl", "a") as f:
            f.write("{not json\n")

        with pytest.raises(StorageUnavailable, match="Corrupt event"):
            log.all_events()

    def test_unusable_directory_raises(self, tmp_path) -> None:  # noqa: ANN001
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")

        with pytest.raises(StorageUnavailable):
            FilesystemEventLog(blocker / "ledger")

    def test_reads_during_large_appends(self, tmp_path) -> None:  # noqa: ANN001
        """Readers never see a half-written line while another thread appends."""
        log = FilesystemEventLog(tmp_path)
        done = threading.Event()
        errors: list[StorageUnavailable] = []

        def read_until_done() -> None:
            while not done.is_set():
                try:
                    log.query_by_entity("exec-other")
                    log.query_by_type("OutputProduced")
                except StorageUnavailable as e:
                    errors.append(e)
                    return

        reader = threading.Thread(target=read_until_done)
        reader.start()
        try:
            for i in range(60):
                log.append(stored(f"evt-{i}", "OutputProduced", output="x" * 100_000))
        finally:
            done.set()
            reader.join()

        assert errors == []
        assert log.position() == 60
