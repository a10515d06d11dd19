"""Read models over the event log."""

from collections import Counter
from datetime import datetime, timedelta

from agentledger.application.projector import StateProjector
from agentledger.domain.events import AgentEventType, IntentDeclared, decode_event
from agentledger.domain.interfaces import EventLogInterface
from agentledger.domain.models import CoordinationEntry, CoordinationStatus

UNKNOWN_STATUS = "unknown"


class RecentExecutionsView:
    """
    Executions declared within a trailing time window, joined with their
    current projected status.

    Only IntentDeclared events inside the window are scanned, so the cost
    is bounded by recent activity rather than total log size.
    """

    def __init__(
        self,
        event_log: EventLogInterface,
        projector: StateProjector | None = None,
    ):
        self._log = event_log
        self._projector = projector or StateProjector(event_log)

    def snapshot(self, now: datetime, window: timedelta) -> CoordinationStatus:
        """
        Build a point-in-time coordination snapshot.

        Args:
            now: Reference instant (end of the window)
            window: How far back to look

        Returns:
            Entries oldest first, with counts grouped by status
        """
        declared = self._log.query_by_type(
            AgentEventType.INTENT_DECLARED.value, since=now - window, until=now
        )
        entries: list[CoordinationEntry] = []
        for stored in reversed(declared):
            event = decode_event(stored)
            if not isinstance(event, IntentDeclared):
                continue
            state = self._projector.find_execution(event.execution_id)
            entries.append(
                CoordinationEntry(
                    execution_id=event.execution_id,
                    agent_id=event.agent_id,
                    intent=event.intent,
                    status=state.status.value if state else UNKNOWN_STATUS,
                    started_at=stored.created_at,
                )
            )

        by_status = Counter(e.status for e in entries)
        return CoordinationStatus(
            total_executions=len(entries),
            by_status=dict(by_status),
            executions=tuple(entries),
            as_of=now,
        )
