"""
KnowledgeQueryService: the read side agents consult before acting.

All operations are read-only. Missing data yields empty results or None,
never an error.
"""

import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from agentledger.application.execution_engine import utc_now
from agentledger.application.pattern_matcher import PatternMatcher
from agentledger.application.projector import StateProjector
from agentledger.application.read_models import RecentExecutionsView
from agentledger.domain.events import (
    AgentEventType,
    AttemptStarted,
    IntentDeclared,
    PatternCaptured,
    decode_event,
)
from agentledger.domain.exceptions import EntityNotFound
from agentledger.domain.interfaces import EventLogInterface, IdentityRegistryInterface
from agentledger.domain.models import (
    AgentContext,
    AgentExecutionState,
    AgentIdentity,
    AgentStatus,
    ApproachStep,
    CoordinationStatus,
    ExecutionStatus,
    HistoryEntry,
    IntentRecord,
    KnowledgePatternState,
    PatternRecord,
    SuccessfulApproach,
)

logger = logging.getLogger(__name__)

DEFAULT_COORDINATION_WINDOW = timedelta(hours=1)
CONTEXT_PATTERN_LIMIT = 5


class KnowledgeQueryService:
    """
    Queries over the event log and projected states.

    Example usage:
        knowledge = KnowledgeQueryService(event_log, identity_registry)
        context = knowledge.get_context_for_agent("lint-agent", "fix style")
    """

    def __init__(
        self,
        event_log: EventLogInterface,
        identity_registry: IdentityRegistryInterface,
        pattern_matcher: PatternMatcher | None = None,
        coordination_window: timedelta = DEFAULT_COORDINATION_WINDOW,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Args:
            event_log: Log to query
            identity_registry: Source of active agents
            pattern_matcher: Matcher for context patterns (default: one over event_log)
            coordination_window: Look-back window for get_coordination_status
            clock: Source of "now" (timezone-aware)
        """
        self._log = event_log
        self._identities = identity_registry
        self._projector = StateProjector(event_log)
        self._matcher = pattern_matcher or PatternMatcher(event_log)
        self._recent = RecentExecutionsView(event_log, self._projector)
        self._window = coordination_window
        self._clock = clock

    def query_by_intent(self, pattern: str, limit: int = 10) -> list[IntentRecord]:
        """Most recent declared intents containing ``pattern``, newest first."""
        records: list[IntentRecord] = []
        for stored in self._log.query_by_type(AgentEventType.INTENT_DECLARED.value):
            if len(records) >= limit:
                break
            event = decode_event(stored)
            if isinstance(event, IntentDeclared) and pattern in event.intent:
                records.append(
                    IntentRecord(
                        execution_id=event.execution_id,
                        agent_id=event.agent_id,
                        intent=event.intent,
                        context=dict(event.context),
                        timestamp=stored.created_at,
                    )
                )
        return records

    def get_execution_history(self, execution_id: str) -> list[HistoryEntry]:
        """Every event of one execution, oldest first, tagged with its kind."""
        return [
            HistoryEntry(
                event_id=e.event_id,
                type=e.event_type,
                data=dict(e.payload),
                timestamp=e.created_at,
            )
            for e in self._log.query_by_entity(execution_id)
        ]

    def get_execution_state(self, execution_id: str) -> AgentExecutionState | None:
        return self._projector.find_execution(execution_id)

    def get_pattern_state(self, pattern_id: str) -> KnowledgePatternState | None:
        try:
            return self._projector.project_pattern(pattern_id)
        except EntityNotFound:
            return None

    def find_successful_approaches(self, intent_substring: str) -> list[SuccessfulApproach]:
        """
        Completed executions whose intent contains ``intent_substring``.

        Each candidate is re-projected, so in-progress and failed executions
        are always excluded. Newest first.
        """
        approaches: list[SuccessfulApproach] = []
        for stored in self._log.query_by_type(AgentEventType.INTENT_DECLARED.value):
            event = decode_event(stored)
            if not isinstance(event, IntentDeclared) or intent_substring not in event.intent:
                continue
            state = self._projector.find_execution(event.execution_id)
            if state is None or state.status != ExecutionStatus.COMPLETED:
                continue
            approaches.append(
                SuccessfulApproach(
                    execution_id=event.execution_id,
                    intent=event.intent,
                    approach=self._extract_approach(event.execution_id),
                    timestamp=stored.created_at,
                )
            )
        return approaches

    def get_coordination_status(self, window: timedelta | None = None) -> CoordinationStatus:
        """Executions declared in the last hour (or ``window``) with their status."""
        return self._recent.snapshot(self._clock(), window or self._window)

    def query_patterns(self, search: str = "", limit: int = 10) -> list[PatternRecord]:
        """Captured patterns whose text contains ``search``, newest first."""
        records: list[PatternRecord] = []
        for stored in self._log.query_by_type(AgentEventType.PATTERN_CAPTURED.value):
            if len(records) >= limit:
                break
            event = decode_event(stored)
            if isinstance(event, PatternCaptured) and search in event.intent_pattern:
                records.append(
                    PatternRecord(
                        pattern_id=event.pattern_id,
                        intent_pattern=event.intent_pattern,
                        approach=event.approach,
                        success_rate=event.success_rate,
                        example_event_ids=event.example_event_ids,
                        timestamp=stored.created_at,
                    )
                )
        return records

    def get_active_agents(self) -> list[AgentIdentity]:
        return self._identities.list_agents(AgentStatus.ACTIVE)

    def get_context_for_agent(self, agent_id: str, intent: str) -> AgentContext:
        """
        Assemble everything an agent should consult before acting on ``intent``.

        The result records the log position it was built from; ``consistent``
        is False when events were appended while it was being assembled.
        """
        position = self._log.position()
        timestamp = self._clock()
        similar = self.find_successful_approaches(intent)
        patterns = self._matcher.match(intent, limit=CONTEXT_PATTERN_LIMIT)
        active = self.get_active_agents()
        consistent = self._log.position() == position
        if not consistent:
            logger.info("Context for %s assembled while the log advanced", agent_id)

        return AgentContext(
            agent_id=agent_id,
            intent=intent,
            similar_executions=tuple(similar),
            patterns=tuple(patterns),
            active_agents=tuple(active),
            timestamp=timestamp,
            log_position=position,
            consistent=consistent,
        )

    def _extract_approach(self, execution_id: str) -> tuple[ApproachStep, ...]:
        steps: list[ApproachStep] = []
        for stored in self._log.query_by_entity(execution_id):
            event = decode_event(stored)
            if isinstance(event, AttemptStarted):
                steps.append(
                    ApproachStep(action=event.action, parameters=dict(event.parameters))
                )
        return tuple(steps)
