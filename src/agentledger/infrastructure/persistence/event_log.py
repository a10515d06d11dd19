"""Event log implementations."""

import json
import logging
import threading
from collections.abc import Iterable, Mapping
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Any

from agentledger.domain.events import StoredEvent
from agentledger.domain.exceptions import StorageUnavailable
from agentledger.domain.interfaces import EventLogInterface

logger = logging.getLogger(__name__)


def _select(
    events: Iterable[StoredEvent],
    event_type: str,
    filters: Mapping[str, Any] | None,
    since: datetime | None,
    until: datetime | None,
    limit: int | None,
) -> list[StoredEvent]:
    """Shared query_by_type semantics: filter, then newest first, then limit."""
    selected = [
        e
        for e in events
        if e.event_type == event_type
        and (since is None or e.created_at >= since)
        and (until is None or e.created_at <= until)
        and all(e.payload.get(k) == v for k, v in (filters or {}).items())
    ]
    selected.sort(key=lambda e: (e.created_at, e.sequence), reverse=True)
    if limit is not None:
        return selected[:limit]
    return selected


class InMemoryEventLog(EventLogInterface):
    """In-memory implementation for testing and ephemeral runs."""

    def __init__(self) -> None:
        self._events: list[StoredEvent] = []
        self._by_entity: dict[str, list[StoredEvent]] = {}
        self._lock = threading.Lock()

    def append(self, event: StoredEvent) -> str:
        with self._lock:
            stored = replace(
                event,
                sequence=len(self._events) + 1,
                created_at=(
                    max(event.created_at, self._events[-1].created_at)
                    if self._events
                    else event.created_at
                ),
            )
            self._events.append(stored)
            if stored.entity_id is not None:
                self._by_entity.setdefault(stored.entity_id, []).append(stored)
        return stored.event_id

    def query_by_entity(self, entity_id: str) -> list[StoredEvent]:
        with self._lock:
            return list(self._by_entity.get(entity_id, ()))

    def query_by_type(
        self,
        event_type: str,
        filters: Mapping[str, Any] | None = None,
        since: datetime | None = None,
        until: datetime | None = None,
        limit: int | None = None,
    ) -> list[StoredEvent]:
        with self._lock:
            events = list(self._events)
        return _select(events, event_type, filters, since, until, limit)

    def all_events(self) -> list[StoredEvent]:
        with self._lock:
            return list(self._events)

    def position(self) -> int:
        with self._lock:
            return len(self._events)


class FilesystemEventLog(EventLogInterface):
    """
    Durable event log stored as a single append-only JSONL file.

    Directory structure:
    {base_path}/
        events.jsonl   # one event per line, in append order

    Reads and appends share one lock, so a reader never sees a line that
    is still being written.
    """

    def __init__(self, base_path: Path) -> None:
        self.base_path = Path(base_path)
        self.events_file = self.base_path / "events.jsonl"
        self._lock = threading.Lock()
        try:
            self.base_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageUnavailable(
                f"Cannot create event log at {self.base_path}: {e}"
            ) from e
        last = self._read_all()
        self._sequence = last[-1].sequence if last else 0
        self._last_created_at = last[-1].created_at if last else None

    def append(self, event: StoredEvent) -> str:
        with self._lock:
            created_at = event.created_at
            if self._last_created_at is not None and created_at < self._last_created_at:
                created_at = self._last_created_at
            stored = replace(event, sequence=self._sequence + 1, created_at=created_at)
            try:
                with open(self.events_file, "a") as f:
                    f.write(json.dumps(self._event_to_dict(stored)) + "\n")
            except OSError as e:
                raise StorageUnavailable(f"Cannot append to {self.events_file}: {e}") from e
            self._sequence = stored.sequence
            self._last_created_at = created_at
        logger.debug(
            "Appended %s #%d for %s", stored.event_type, stored.sequence, stored.entity_id
        )
        return stored.event_id

    def query_by_entity(self, entity_id: str) -> list[StoredEvent]:
        with self._lock:
            events = self._read_all()
        return [e for e in events if e.entity_id == entity_id]

    def query_by_type(
        self,
        event_type: str,
        filters: Mapping[str, Any] | None = None,
        since: datetime | None = None,
        until: datetime | None = None,
        limit: int | None = None,
    ) -> list[StoredEvent]:
        with self._lock:
            events = self._read_all()
        return _select(events, event_type, filters, since, until, limit)

    def all_events(self) -> list[StoredEvent]:
        with self._lock:
            return self._read_all()

    def position(self) -> int:
        with self._lock:
            return self._sequence

    def _read_all(self) -> list[StoredEvent]:
        if not self.events_file.exists():
            return []
        events: list[StoredEvent] = []
        try:
            with open(self.events_file) as f:
                for line_number, line in enumerate(f, start=1):
                    if not line.strip():
                        continue
                    try:
                        events.append(self._dict_to_event(json.loads(line)))
                    except (json.JSONDecodeError, KeyError) as e:
                        raise StorageUnavailable(
                            f"Corrupt event at {self.events_file}:{line_number}: {e}"
                        ) from e
        except OSError as e:
            raise StorageUnavailable(f"Cannot read {self.events_file}: {e}") from e
        return events

    def _event_to_dict(self, event: StoredEvent) -> dict[str, Any]:
        """Serialize event to dict."""
        return {
            "event_id": event.event_id,
            "event_type": event.event_type,
            "entity_id": event.entity_id,
            "payload": event.payload,
            "created_at": event.created_at.isoformat(),
            "sequence": event.sequence,
        }

    def _dict_to_event(self, data: dict[str, Any]) -> StoredEvent:
        """Deserialize dict to event."""
        return StoredEvent(
            event_id=data["event_id"],
            event_type=data["event_type"],
            entity_id=data.get("entity_id"),
            payload=data.get("payload") or {},
            created_at=datetime.fromisoformat(data["created_at"]),
            sequence=data["sequence"],
        )
