"""
StateProjector: derives current state by replaying an entity's events.

No caching: every call replays the full history, so the result always
reflects the latest committed events.
"""

from agentledger.domain.events import (
    AttemptStarted,
    IntentDeclared,
    OutputProduced,
    OutputValidated,
    PatternCaptured,
    StoredEvent,
    decode_event,
)
from agentledger.domain.exceptions import EntityNotFound
from agentledger.domain.interfaces import EventLogInterface
from agentledger.domain.models import (
    AgentExecutionState,
    KnowledgePatternState,
    StateKind,
)
from agentledger.domain.state_machine import apply_execution_event, apply_pattern_event

EXECUTION_EVENTS = (IntentDeclared, AttemptStarted, OutputProduced, OutputValidated)


class StateProjector:
    """Folds per-entity events through the state machine's apply functions."""

    def __init__(self, event_log: EventLogInterface):
        """
        Args:
            event_log: Log to replay events from
        """
        self._log = event_log

    def project(
        self, entity_id: str, kind: StateKind
    ) -> AgentExecutionState | KnowledgePatternState:
        """
        Replay all events for ``entity_id`` into a fresh state of ``kind``.

        Events of unknown type are skipped.

        Raises:
            EntityNotFound: If the entity has no events of that kind
        """
        if kind == StateKind.EXECUTION:
            return self.project_execution(entity_id)
        return self.project_pattern(entity_id)

    def project_execution(self, execution_id: str) -> AgentExecutionState:
        """
        Raises:
            EntityNotFound: If no execution event exists for the id, including
                ids that only carry pattern captures
        """
        state = AgentExecutionState()
        found = False
        for stored in self._events(execution_id, StateKind.EXECUTION):
            event = decode_event(stored)
            if isinstance(event, EXECUTION_EVENTS):
                found = True
            if event is not None:
                apply_execution_event(state, event)
        if not found:
            raise EntityNotFound(execution_id, StateKind.EXECUTION.value)
        return state

    def project_pattern(self, pattern_id: str) -> KnowledgePatternState:
        """
        Raises:
            EntityNotFound: If the id was never captured as a pattern
        """
        state = KnowledgePatternState()
        found = False
        for stored in self._events(pattern_id, StateKind.PATTERN):
            event = decode_event(stored)
            if isinstance(event, PatternCaptured):
                found = True
            if event is not None:
                apply_pattern_event(state, event)
        if not found:
            raise EntityNotFound(pattern_id, StateKind.PATTERN.value)
        return state

    def find_execution(self, execution_id: str) -> AgentExecutionState | None:
        """Projection or None when the id holds no execution."""
        try:
            return self.project_execution(execution_id)
        except EntityNotFound:
            return None

    def _events(self, entity_id: str, kind: StateKind) -> list[StoredEvent]:
        events = self._log.query_by_entity(entity_id)
        if not events:
            raise EntityNotFound(entity_id, kind.value)
        return events
