"""
Execution state machine.

declared -> attempting -> (completed | failed), where a new AttemptStarted
re-enters attempting after a failure without opening a new execution.

The apply functions are total: replaying the log never rejects an event.
Transition rules are only enforced before an event is appended, through
``check_transition``.
"""

from agentledger.domain.events import (
    AttemptStarted,
    DomainEvent,
    IntentDeclared,
    OutputProduced,
    OutputValidated,
    PatternCaptured,
    StopSignalSent,
)
from agentledger.domain.exceptions import InvalidTransition
from agentledger.domain.models import (
    AgentExecutionState,
    AgentStatus,
    ExecutionStatus,
    KnowledgePatternState,
    OutputRecord,
    TransitionPolicy,
    ValidationRecord,
)

# =============================================================================
# EXECUTION APPLY FUNCTIONS
# =============================================================================


def apply_intent_declared(state: AgentExecutionState, event: IntentDeclared) -> None:
    state.agent_id = event.agent_id
    state.intent = event.intent
    state.status = ExecutionStatus.DECLARED
    state.started_at = event.timestamp


def apply_attempt_started(state: AgentExecutionState, event: AttemptStarted) -> None:
    state.current_attempt_id = event.attempt_id
    state.status = ExecutionStatus.ATTEMPTING
    state.completed_at = None


def apply_output_produced(state: AgentExecutionState, event: OutputProduced) -> None:
    state.outputs.append(
        OutputRecord(
            attempt_id=event.attempt_id,
            output=event.output,
            artifacts=dict(event.artifacts),
            timestamp=event.timestamp,
        )
    )


def apply_output_validated(state: AgentExecutionState, event: OutputValidated) -> None:
    state.validations.append(
        ValidationRecord(
            attempt_id=event.attempt_id,
            passed=event.passed,
            validator=event.validator,
            criteria=event.criteria,
            errors=event.errors,
            timestamp=event.timestamp,
        )
    )
    if event.passed:
        state.status = ExecutionStatus.COMPLETED
        state.completed_at = event.timestamp
    else:
        state.status = ExecutionStatus.FAILED
        state.completed_at = None


def apply_execution_event(state: AgentExecutionState, event: DomainEvent) -> None:
    """Apply one event to an execution state in place.

    Events that do not concern executions (stop signals, pattern captures)
    leave the state untouched.
    """
    if isinstance(event, IntentDeclared):
        apply_intent_declared(state, event)
    elif isinstance(event, AttemptStarted):
        apply_attempt_started(state, event)
    elif isinstance(event, OutputProduced):
        apply_output_produced(state, event)
    elif isinstance(event, OutputValidated):
        apply_output_validated(state, event)
    elif isinstance(event, StopSignalSent | PatternCaptured):
        return


# =============================================================================
# PATTERN APPLY FUNCTION
# =============================================================================


def apply_pattern_event(state: KnowledgePatternState, event: DomainEvent) -> None:
    """Apply a capture to a pattern state in place; other kinds are ignored."""
    if not isinstance(event, PatternCaptured):
        return
    state.intent_pattern = event.intent_pattern
    state.approach = event.approach
    state.success_rate = event.success_rate
    state.example_event_ids = frozenset(event.example_event_ids)
    state.occurrence_count += 1
    if state.first_seen_at is None:
        state.first_seen_at = event.timestamp
    state.last_seen_at = event.timestamp


# =============================================================================
# SIDE EFFECTS AND PRECONDITIONS
# =============================================================================


def identity_status_after(event: DomainEvent) -> AgentStatus | None:
    """Status the acting agent moves to after this event, if any.

    A failed validation returns None: the agent stays active for a retry.
    """
    if isinstance(event, IntentDeclared | AttemptStarted):
        return AgentStatus.ACTIVE
    if isinstance(event, OutputValidated) and event.passed:
        return AgentStatus.IDLE
    if isinstance(event, StopSignalSent):
        return AgentStatus.IDLE
    return None


def check_transition(
    state: AgentExecutionState | None,
    event: DomainEvent,
    policy: TransitionPolicy = TransitionPolicy.STRICT,
) -> None:
    """
    Verify that ``event`` may be appended given the execution's current state.

    Args:
        state: Projected state of the target execution (None if it has no events)
        event: The event about to be appended
        policy: STRICT enforces the rules below, PERMISSIVE accepts everything

    Raises:
        InvalidTransition: If the event breaks the state machine under STRICT
    """
    if policy == TransitionPolicy.PERMISSIVE:
        return

    kind = event.event_type.value

    if isinstance(event, IntentDeclared):
        if state is not None:
            raise InvalidTransition(kind, event.entity_id, "execution already declared")
        return

    if not isinstance(event, AttemptStarted | OutputProduced | OutputValidated):
        return

    if state is None:
        raise InvalidTransition(kind, event.entity_id, "execution does not exist")

    if isinstance(event, AttemptStarted):
        if state.status == ExecutionStatus.COMPLETED:
            raise InvalidTransition(kind, event.entity_id, "execution already completed")
        return

    if state.status != ExecutionStatus.ATTEMPTING:
        raise InvalidTransition(
            kind, event.entity_id, f"no attempt in progress (status={state.status.value})"
        )
    if event.attempt_id != state.current_attempt_id:
        raise InvalidTransition(
            kind,
            event.entity_id,
            f"attempt {event.attempt_id} is not the current attempt",
        )
