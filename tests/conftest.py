"""Shared pytest fixtures for agentledger tests."""

from datetime import UTC, datetime, timedelta

import pytest

from agentledger.application.execution_engine import ExecutionEngine
from agentledger.application.knowledge import KnowledgeQueryService
from agentledger.application.pattern_matcher import PatternMatcher
from agentledger.domain.models import AgentIdentity, TransitionPolicy
from agentledger.infrastructure.persistence import (
    InMemoryEventLog,
    InMemoryIdentityRegistry,
)

START = datetime(2026, 1, 5, 3, 42, 41, tzinfo=UTC)


class FakeClock:
    """Deterministic clock: every call returns the current time, then ticks."""

    def __init__(self, start: datetime = START, step: timedelta = timedelta(seconds=1)):
        self.now = start
        self.step = step

    def __call__(self) -> datetime:
        current = self.now
        self.now += self.step
        return current

    def advance(self, delta: timedelta) -> None:
        self.now += delta


@pytest.fixture
def clock() -> FakeClock:
    """A clock starting at a fixed instant and ticking one second per call."""
    return FakeClock()


@pytest.fixture
def event_log() -> InMemoryEventLog:
    """Create an in-memory event log."""
    return InMemoryEventLog()


@pytest.fixture
def identity_registry() -> InMemoryIdentityRegistry:
    """Create an in-memory identity registry with one lint agent."""
    registry = InMemoryIdentityRegistry()
    registry.register(
        AgentIdentity(
            agent_id="lint-agent",
            name="Lint Agent",
            role="linter",
            capabilities=frozenset({"pint", "style-fixes"}),
        )
    )
    return registry


@pytest.fixture
def engine(
    event_log: InMemoryEventLog,
    identity_registry: InMemoryIdentityRegistry,
    clock: FakeClock,
) -> ExecutionEngine:
    """Execution engine with the strict transition policy."""
    return ExecutionEngine(event_log, identity_registry, clock=clock)


@pytest.fixture
def permissive_engine(
    event_log: InMemoryEventLog,
    identity_registry: InMemoryIdentityRegistry,
    clock: FakeClock,
) -> ExecutionEngine:
    """Execution engine that accepts every event."""
    return ExecutionEngine(
        event_log, identity_registry, policy=TransitionPolicy.PERMISSIVE, clock=clock
    )


@pytest.fixture
def matcher(event_log: InMemoryEventLog) -> PatternMatcher:
    """Pattern matcher with default thresholds."""
    return PatternMatcher(event_log)


@pytest.fixture
def knowledge(
    event_log: InMemoryEventLog,
    identity_registry: InMemoryIdentityRegistry,
    matcher: PatternMatcher,
    clock: FakeClock,
) -> KnowledgeQueryService:
    """Knowledge query service sharing the engine's clock."""
    return KnowledgeQueryService(
        event_log, identity_registry, pattern_matcher=matcher, clock=clock
    )


@pytest.fixture
def completed_execution(engine: ExecutionEngine) -> str:
    """A lint execution that passed on its first attempt."""
    execution_id = engine.declare_intent("lint-agent", "Fix linting errors")
    attempt_id = engine.start_attempt(
        execution_id, "lint-agent", "Running Pint", {"path": "app/"}
    )
    engine.produce_output(execution_id, attempt_id, "Fixed 3 files")
    engine.validate_output(execution_id, attempt_id, True, criteria=["pint --test"])
    return execution_id
