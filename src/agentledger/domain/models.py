"""
Domain models for the agent ledger.

Projected states are the only mutable models: they are rebuilt from scratch
on every projection. Everything else is a frozen dataclass.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

# =============================================================================
# STATUS ENUMS
# =============================================================================


class ExecutionStatus(str, Enum):
    """Lifecycle of an agent execution."""

    DECLARED = "declared"
    ATTEMPTING = "attempting"
    COMPLETED = "completed"
    FAILED = "failed"  # Terminal for the current attempt only


class AgentStatus(str, Enum):
    """Operational status of an agent identity."""

    ACTIVE = "active"
    IDLE = "idle"
    BLOCKED = "blocked"


class StateKind(str, Enum):
    """Kinds of projected state."""

    EXECUTION = "execution"
    PATTERN = "pattern"


class TransitionPolicy(str, Enum):
    """How the execution engine treats events that break the state machine."""

    STRICT = "strict"  # Reject with InvalidTransition before appending
    PERMISSIVE = "permissive"  # Accept every event


# =============================================================================
# PROJECTED STATES
# =============================================================================


@dataclass(frozen=True)
class OutputRecord:
    """One produced output inside an execution."""

    attempt_id: str
    output: str
    artifacts: dict[str, Any]
    timestamp: datetime


@dataclass(frozen=True)
class ValidationRecord:
    """One validation verdict inside an execution."""

    attempt_id: str
    passed: bool
    validator: str
    criteria: tuple[str, ...]
    errors: tuple[str, ...]
    timestamp: datetime


@dataclass
class AgentExecutionState:
    """Current state of one execution, derived by replaying its events."""

    agent_id: str = ""
    intent: str = ""
    current_attempt_id: str | None = None
    status: ExecutionStatus = ExecutionStatus.DECLARED
    outputs: list[OutputRecord] = field(default_factory=list)
    validations: list[ValidationRecord] = field(default_factory=list)
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def is_completed(self) -> bool:
        return self.status == ExecutionStatus.COMPLETED


@dataclass
class KnowledgePatternState:
    """Current state of one knowledge pattern."""

    intent_pattern: str = ""
    approach: str = ""
    success_rate: float = 0.0
    example_event_ids: frozenset[str] = frozenset()
    occurrence_count: int = 0
    first_seen_at: datetime | None = None
    last_seen_at: datetime | None = None


# =============================================================================
# AGENT IDENTITY
# =============================================================================


@dataclass(frozen=True)
class AgentIdentity:
    """
    Operational record of a named agent.

    Not event-sourced. ``version`` increments on every status change and
    serves as the optimistic-concurrency token for registry updates.
    """

    agent_id: str
    name: str
    role: str
    capabilities: frozenset[str] = frozenset()
    status: AgentStatus = AgentStatus.IDLE
    last_active_at: datetime | None = None
    version: int = 0


# =============================================================================
# KNOWLEDGE QUERY RESULTS
# =============================================================================


@dataclass(frozen=True)
class IntentRecord:
    """A declared intent as returned by intent queries."""

    execution_id: str
    agent_id: str
    intent: str
    context: dict[str, Any]
    timestamp: datetime


@dataclass(frozen=True)
class HistoryEntry:
    """One event of an execution's history, tagged with its kind."""

    event_id: str
    type: str
    data: dict[str, Any]
    timestamp: datetime


@dataclass(frozen=True)
class ApproachStep:
    """Action taken by one attempt."""

    action: str
    parameters: dict[str, Any]


@dataclass(frozen=True)
class SuccessfulApproach:
    """A completed execution and the attempts that led there."""

    execution_id: str
    intent: str
    approach: tuple[ApproachStep, ...]
    timestamp: datetime
    success: bool = True


@dataclass(frozen=True)
class CoordinationEntry:
    """A recent execution joined with its projected status."""

    execution_id: str
    agent_id: str
    intent: str
    status: str  # ExecutionStatus value, or "unknown"
    started_at: datetime


@dataclass(frozen=True)
class CoordinationStatus:
    """Point-in-time snapshot of recent executions."""

    total_executions: int
    by_status: dict[str, int]
    executions: tuple[CoordinationEntry, ...]
    as_of: datetime


@dataclass(frozen=True)
class PatternRecord:
    """A captured pattern as returned by pattern listings."""

    pattern_id: str
    intent_pattern: str
    approach: str
    success_rate: float
    example_event_ids: tuple[str, ...]
    timestamp: datetime


@dataclass(frozen=True)
class PatternMatch:
    """A ranked match produced by the pattern matcher."""

    pattern: PatternRecord
    confidence: float
    method: str  # "exact", "fuzzy", "embedding" or "keyword"


@dataclass(frozen=True)
class AgentContext:
    """
    Everything an agent consults before acting.

    ``log_position`` is the highest event sequence visible when the snapshot
    was assembled; ``consistent`` is False if the log moved while it was
    being assembled.
    """

    agent_id: str
    intent: str
    similar_executions: tuple[SuccessfulApproach, ...]
    patterns: tuple[PatternMatch, ...]
    active_agents: tuple[AgentIdentity, ...]
    timestamp: datetime
    log_position: int
    consistent: bool = True


# =============================================================================
# UNITS OF WORK
# =============================================================================


@dataclass(frozen=True)
class WorkOutput:
    """Result of running a unit of work for one attempt."""

    output: str
    artifacts: dict[str, Any] = field(default_factory=dict)
    exit_code: int | None = None
    errors: tuple[str, ...] = ()


@dataclass(frozen=True)
class ValidationResult:
    """Verdict of a validator on a work output."""

    passed: bool
    criteria: tuple[str, ...] = ()
    errors: tuple[str, ...] = ()


@dataclass(frozen=True)
class ExecutionOutcome:
    """Result of a coordinated agent run."""

    execution_id: str
    passed: bool
    output: str
    attempt_ids: tuple[str, ...]
    handed_off_to: str | None = None
