"""
ExecutionEngine: the write side of the ledger.

Fires events into the log, enforcing the transition policy beforehand and
updating the acting agent's identity afterwards.
"""

import logging
import threading
import uuid
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from agentledger.application.projector import EXECUTION_EVENTS, StateProjector
from agentledger.domain.events import (
    AttemptStarted,
    DomainEvent,
    IntentDeclared,
    OutputProduced,
    OutputValidated,
    PatternCaptured,
    StopSignalSent,
    encode_event,
)
from agentledger.domain.exceptions import InvalidTransition, UnknownAgent
from agentledger.domain.interfaces import EventLogInterface, IdentityRegistryInterface
from agentledger.domain.models import AgentStatus, TransitionPolicy
from agentledger.domain.state_machine import check_transition, identity_status_after

logger = logging.getLogger(__name__)

# Entities hash onto a fixed pool of locks, so memory stays flat however many
# executions the engine sees.
LOCK_STRIPES = 64


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ExecutionEngine:
    """
    Records agent actions as events.

    Handles ID generation and timestamps. Appends for one entity are
    serialized (check + append under the entity's lock stripe); entities on
    different stripes proceed concurrently.
    """

    def __init__(
        self,
        event_log: EventLogInterface,
        identity_registry: IdentityRegistryInterface,
        policy: TransitionPolicy = TransitionPolicy.STRICT,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """
        Args:
            event_log: Log that receives every event
            identity_registry: Registry updated as a side effect of transitions
            policy: STRICT rejects out-of-order events, PERMISSIVE accepts all
            clock: Source of event timestamps (timezone-aware)
        """
        self._log = event_log
        self._identities = identity_registry
        self._policy = policy
        self._clock = clock
        self._projector = StateProjector(event_log)
        self._entity_locks = tuple(threading.Lock() for _ in range(LOCK_STRIPES))

    @property
    def policy(self) -> TransitionPolicy:
        return self._policy

    # -------------------------------------------------------------------------
    # Execution lifecycle
    # -------------------------------------------------------------------------

    def declare_intent(
        self,
        agent_id: str,
        intent: str,
        context: dict[str, Any] | None = None,
        execution_id: str | None = None,
    ) -> str:
        """Open a new execution. Returns its execution_id."""
        event = IntentDeclared(
            execution_id=execution_id or str(uuid.uuid4()),
            agent_id=agent_id,
            intent=intent,
            context=dict(context or {}),
            timestamp=self._clock(),
        )
        self._fire(event, agent_id)
        return event.execution_id

    def start_attempt(
        self,
        execution_id: str,
        agent_id: str,
        action: str,
        parameters: dict[str, Any] | None = None,
    ) -> str:
        """Begin an attempt within an execution. Returns the new attempt_id."""
        event = AttemptStarted(
            execution_id=execution_id,
            agent_id=agent_id,
            attempt_id=str(uuid.uuid4()),
            action=action,
            parameters=dict(parameters or {}),
            timestamp=self._clock(),
        )
        self._fire(event, agent_id)
        return event.attempt_id

    def produce_output(
        self,
        execution_id: str,
        attempt_id: str,
        output: str,
        artifacts: dict[str, Any] | None = None,
    ) -> str:
        """Record an attempt's output. Returns the event_id."""
        event = OutputProduced(
            execution_id=execution_id,
            attempt_id=attempt_id,
            output=output,
            artifacts=dict(artifacts or {}),
            timestamp=self._clock(),
        )
        return self._fire(event, None)

    def validate_output(
        self,
        execution_id: str,
        attempt_id: str,
        passed: bool,
        validator: str = "self",
        criteria: list[str] | tuple[str, ...] = (),
        errors: list[str] | tuple[str, ...] = (),
        agent_id: str | None = None,
    ) -> str:
        """
        Record a validation verdict. Returns the event_id.

        Args:
            agent_id: Acting agent whose identity goes idle on a pass;
                defaults to the agent that declared the execution
        """
        event = OutputValidated(
            execution_id=execution_id,
            attempt_id=attempt_id,
            passed=passed,
            validator=validator,
            criteria=tuple(criteria),
            errors=tuple(errors),
            timestamp=self._clock(),
        )
        if agent_id is None:
            state = self._projector.find_execution(execution_id)
            agent_id = state.agent_id if state else None
        return self._fire(event, agent_id)

    def send_stop_signal(
        self,
        agent_id: str,
        reason: str,
        next_agent: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> str | None:
        """
        Signal that ``agent_id`` is done and work may continue with ``next_agent``.

        Fire-and-observe: nothing waits for the next agent to react.

        Returns:
            The next agent's id (None if no handoff target was named)
        """
        event = StopSignalSent(
            agent_id=agent_id,
            reason=reason,
            next_agent=next_agent,
            context=dict(context or {}),
            timestamp=self._clock(),
        )
        self._fire(event, agent_id)
        return next_agent

    # -------------------------------------------------------------------------
    # Knowledge patterns
    # -------------------------------------------------------------------------

    def capture_pattern(
        self,
        intent_pattern: str,
        approach: str,
        success_rate: float,
        example_event_ids: list[str] | tuple[str, ...] = (),
        pattern_id: str | None = None,
    ) -> str:
        """
        Capture a knowledge pattern. Returns its pattern_id.

        A fresh id is generated unless ``pattern_id`` is given; patterns are
        never deduplicated by text.

        Raises:
            ValueError: If success_rate is outside [0, 1]
        """
        if not 0.0 <= success_rate <= 1.0:
            raise ValueError(f"success_rate must be within [0, 1], got {success_rate}")
        event = PatternCaptured(
            pattern_id=pattern_id or str(uuid.uuid4()),
            intent_pattern=intent_pattern,
            approach=approach,
            success_rate=success_rate,
            example_event_ids=tuple(example_event_ids),
            timestamp=self._clock(),
        )
        self._fire(event, None)
        return event.pattern_id

    def reinforce_pattern(
        self,
        pattern_id: str,
        intent_pattern: str,
        approach: str,
        success_rate: float,
        example_event_ids: list[str] | tuple[str, ...] = (),
    ) -> str:
        """
        Capture again under an existing pattern id.

        Raises:
            EntityNotFound: If the id was never captured as a pattern
        """
        self._projector.project_pattern(pattern_id)
        return self.capture_pattern(
            intent_pattern,
            approach,
            success_rate,
            example_event_ids=example_event_ids,
            pattern_id=pattern_id,
        )

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _lock_for(self, entity_id: str) -> threading.Lock:
        return self._entity_locks[hash(entity_id) % LOCK_STRIPES]

    def _fire(self, event: DomainEvent, agent_id: str | None) -> str:
        event_id = str(uuid.uuid4())
        entity_id = event.entity_id

        if entity_id is None:
            event_id = self._log.append(encode_event(event, event_id))
        else:
            with self._lock_for(entity_id):
                if self._policy == TransitionPolicy.STRICT:
                    try:
                        self._check(event, entity_id)
                    except InvalidTransition as e:
                        logger.warning("Rejected event: %s", e)
                        raise
                event_id = self._log.append(encode_event(event, event_id))

        logger.info("%s recorded for %s", event.event_type.value, entity_id or agent_id)

        status = identity_status_after(event)
        if status is not None and agent_id is not None:
            self._touch_identity(agent_id, status, event.timestamp)
        return event_id

    def _check(self, event: DomainEvent, entity_id: str) -> None:
        """Strict preconditions; an id never holds both an execution and a pattern."""
        kind = event.event_type.value
        if isinstance(event, EXECUTION_EVENTS):
            state = self._projector.find_execution(entity_id)
            check_transition(state, event, self._policy)
            if isinstance(event, IntentDeclared) and self._log.query_by_entity(entity_id):
                raise InvalidTransition(kind, entity_id, "id already names a pattern")
        elif isinstance(event, PatternCaptured):
            if self._projector.find_execution(entity_id) is not None:
                raise InvalidTransition(kind, entity_id, "id already names an execution")

    def _touch_identity(self, agent_id: str, status: AgentStatus, at: datetime) -> None:
        try:
            self._identities.update_status(agent_id, status, at)
        except UnknownAgent:
            logger.debug("No identity registered for %s; status not tracked", agent_id)
