"""Tests for the execution state machine apply functions and preconditions."""

from datetime import UTC, datetime, timedelta

import pytest

from agentledger.domain.events import (
    AttemptStarted,
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
    TransitionPolicy,
)
from agentledger.domain.state_machine import (
    apply_execution_event,
    apply_pattern_event,
    check_transition,
    identity_status_after,
)

T0 = datetime(2026, 1, 5, 12, 0, 0, tzinfo=UTC)


def at(seconds: int) -> datetime:
    return T0 + timedelta(seconds=seconds)


def replay(*events) -> AgentExecutionState:
    state = AgentExecutionState()
    for event in events:
        apply_execution_event(state, event)
    return state


DECLARED = IntentDeclared("exec-1", "lint-agent", "Fix linting errors", at(0))
STARTED = AttemptStarted("exec-1", "lint-agent", "att-1", "Running Pint", at(1))
PRODUCED = OutputProduced("exec-1", "att-1", "Fixed 3 files", at(2))
PASSED = OutputValidated("exec-1", "att-1", True, at(3))
FAILED = OutputValidated("exec-1", "att-1", False, at(3), errors=("still dirty",))


class TestExecutionTransitions:
    """Tests for apply_execution_event."""

    def test_intent_declared(self) -> None:
        state = replay(DECLARED)

        assert state.agent_id == "lint-agent"
        assert state.intent == "Fix linting errors"
        assert state.status == ExecutionStatus.DECLARED
        assert state.started_at == at(0)
        assert state.completed_at is None

    def test_attempt_started(self) -> None:
        state = replay(DECLARED, STARTED)

        assert state.status == ExecutionStatus.ATTEMPTING
        assert state.current_attempt_id == "att-1"

    def test_output_produced_appends(self) -> None:
        state = replay(DECLARED, STARTED, PRODUCED)

        assert state.status == ExecutionStatus.ATTEMPTING
        assert len(state.outputs) == 1
        assert state.outputs[0].output == "Fixed 3 files"
        assert state.outputs[0].attempt_id == "att-1"

    def test_passed_validation_completes(self) -> None:
        state = replay(DECLARED, STARTED, PRODUCED, PASSED)

        assert state.status == ExecutionStatus.COMPLETED
        assert state.completed_at == at(3)
        assert state.validations[0].validator == "self"

    def test_failed_validation_fails_without_completion(self) -> None:
        state = replay(DECLARED, STARTED, PRODUCED, FAILED)

        assert state.status == ExecutionStatus.FAILED
        assert state.completed_at is None
        assert state.validations[0].errors == ("still dirty",)

    def test_retry_after_failure(self) -> None:
        """A new attempt re-enters attempting within the same execution."""
        retry = AttemptStarted("exec-1", "lint-agent", "att-2", "Running Pint", at(4))
        passed = OutputValidated("exec-1", "att-2", True, at(6))

        state = replay(DECLARED, STARTED, PRODUCED, FAILED, retry, passed)

        assert state.current_attempt_id == "att-2"
        assert state.status == ExecutionStatus.COMPLETED
        assert len(state.validations) == 2

    def test_stop_signal_does_not_mutate(self) -> None:
        stop = StopSignalSent("lint-agent", "done", at(5))

        assert replay(DECLARED, STARTED, stop) == replay(DECLARED, STARTED)

    def test_projection_never_rejects(self) -> None:
        """Out-of-order events are applied as recorded."""
        state = replay(PASSED, STARTED)

        assert state.status == ExecutionStatus.ATTEMPTING
        assert state.completed_at is None

    def test_completion_invariant_over_every_prefix(self) -> None:
        """completed_at is set exactly when the status is completed."""
        retry = AttemptStarted("exec-1", "lint-agent", "att-2", "Running Pint", at(4))
        events = [DECLARED, STARTED, PRODUCED, FAILED, retry, PASSED]

        for n in range(len(events) + 1):
            state = replay(*events[:n])
            assert (state.completed_at is not None) == (
                state.status == ExecutionStatus.COMPLETED
            ), f"prefix of length {n}"

    def test_replay_is_deterministic(self) -> None:
        events = (DECLARED, STARTED, PRODUCED, FAILED)

        assert replay(*events) == replay(*events)


class TestPatternTransitions:
    """Tests for apply_pattern_event."""

    def test_occurrence_counting(self) -> None:
        """N captures under one id give occurrence_count N."""
        state = KnowledgePatternState()
        for i in range(3):
            apply_pattern_event(
                state, PatternCaptured("pat-1", "fix lint", f"v{i}", 0.5 + i / 10, at(i))
            )

        assert state.occurrence_count == 3
        assert state.first_seen_at == at(0)
        assert state.last_seen_at == at(2)
        assert state.approach == "v2"
        assert state.success_rate == pytest.approx(0.7)

    def test_example_event_ids_become_a_set(self) -> None:
        state = KnowledgePatternState()
        apply_pattern_event(
            state,
            PatternCaptured("pat-1", "fix lint", "pint", 1.0, at(0), ("e1", "e2", "e1")),
        )

        assert state.example_event_ids == frozenset({"e1", "e2"})

    def test_execution_events_are_ignored(self) -> None:
        state = KnowledgePatternState()
        apply_pattern_event(state, DECLARED)

        assert state == KnowledgePatternState()


class TestIdentitySideEffects:
    """Tests for identity_status_after."""

    @pytest.mark.parametrize(
        ("event", "expected"),
        [
            (DECLARED, AgentStatus.ACTIVE),
            (STARTED, AgentStatus.ACTIVE),
            (PRODUCED, None),
            (PASSED, AgentStatus.IDLE),
            (FAILED, None),
            (StopSignalSent("lint-agent", "done", at(5)), AgentStatus.IDLE),
        ],
    )
    def test_status_after_event(self, event, expected) -> None:
        assert identity_status_after(event) == expected


class TestCheckTransition:
    """Tests for strict-policy preconditions."""

    def test_new_execution_is_allowed(self) -> None:
        check_transition(None, DECLARED)

    def test_redeclaring_is_rejected(self) -> None:
        with pytest.raises(InvalidTransition, match="already declared"):
            check_transition(replay(DECLARED), DECLARED)

    def test_attempt_on_missing_execution_is_rejected(self) -> None:
        with pytest.raises(InvalidTransition, match="does not exist"):
            check_transition(None, STARTED)

    def test_attempt_on_completed_execution_is_rejected(self) -> None:
        state = replay(DECLARED, STARTED, PRODUCED, PASSED)

        with pytest.raises(InvalidTransition, match="already completed"):
            check_transition(state, STARTED)

    def test_attempt_after_failure_is_allowed(self) -> None:
        check_transition(replay(DECLARED, STARTED, FAILED), STARTED)

    def test_output_before_attempt_is_rejected(self) -> None:
        with pytest.raises(InvalidTransition, match="no attempt in progress"):
            check_transition(replay(DECLARED), PRODUCED)

    def test_output_for_stale_attempt_is_rejected(self) -> None:
        stale = OutputProduced("exec-1", "att-0", "old", at(2))

        with pytest.raises(InvalidTransition, match="not the current attempt"):
            check_transition(replay(DECLARED, STARTED), stale)

    def test_validation_twice_is_rejected(self) -> None:
        state = replay(DECLARED, STARTED, PRODUCED, FAILED)

        with pytest.raises(InvalidTransition):
            check_transition(state, PASSED)

    def test_permissive_accepts_everything(self) -> None:
        check_transition(None, PASSED, TransitionPolicy.PERMISSIVE)

    def test_rejection_carries_context(self) -> None:
        with pytest.raises(InvalidTransition) as exc_info:
            check_transition(None, STARTED)

        assert exc_info.value.event_type == "AttemptStarted"
        assert exc_info.value.entity_id == "exec-1"
