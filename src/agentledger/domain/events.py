"""Agent coordination events.

Every state change in the ledger is one of the closed set of event kinds
below. Each kind is a frozen dataclass that knows its entity id and how to
convert itself to and from the JSON-safe payload stored in the event log.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, ClassVar


class AgentEventType(str, Enum):
    """Kinds of events recorded in the ledger."""

    INTENT_DECLARED = "IntentDeclared"
    ATTEMPT_STARTED = "AttemptStarted"
    OUTPUT_PRODUCED = "OutputProduced"
    OUTPUT_VALIDATED = "OutputValidated"
    STOP_SIGNAL_SENT = "StopSignalSent"
    PATTERN_CAPTURED = "PatternCaptured"


@dataclass(frozen=True)
class StoredEvent:
    """Envelope for an event as persisted in the log.

    ``event_type`` is kept as a plain string so that logs written by newer
    versions (with kinds this version does not know) can still be read.
    ``sequence`` is assigned by the log on append and orders events that
    share a ``created_at`` timestamp.
    """

    event_id: str
    event_type: str
    entity_id: str | None
    payload: dict[str, Any]
    created_at: datetime
    sequence: int = 0


def _ts(value: datetime) -> str:
    return value.isoformat()


def _parse_ts(value: str) -> datetime:
    return datetime.fromisoformat(value)


@dataclass(frozen=True)
class IntentDeclared:
    """An agent announces what it is about to do. Opens an execution."""

    event_type: ClassVar[AgentEventType] = AgentEventType.INTENT_DECLARED

    execution_id: str
    agent_id: str
    intent: str
    timestamp: datetime
    context: dict[str, Any] = field(default_factory=dict)

    @property
    def entity_id(self) -> str:
        return self.execution_id

    def to_payload(self) -> dict[str, Any]:
        return {
            "execution_id": self.execution_id,
            "agent_id": self.agent_id,
            "intent": self.intent,
            "context": dict(self.context),
            "timestamp": _ts(self.timestamp),
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "IntentDeclared":
        return cls(
            execution_id=payload["execution_id"],
            agent_id=payload["agent_id"],
            intent=payload["intent"],
            context=payload.get("context") or {},
            timestamp=_parse_ts(payload["timestamp"]),
        )


@dataclass(frozen=True)
class AttemptStarted:
    """An agent begins a (possibly repeated) attempt within an execution."""

    event_type: ClassVar[AgentEventType] = AgentEventType.ATTEMPT_STARTED

    execution_id: str
    agent_id: str
    attempt_id: str
    action: str
    timestamp: datetime
    parameters: dict[str, Any] = field(default_factory=dict)

    @property
    def entity_id(self) -> str:
        return self.execution_id

    def to_payload(self) -> dict[str, Any]:
        return {
            "execution_id": self.execution_id,
            "agent_id": self.agent_id,
            "attempt_id": self.attempt_id,
            "action": self.action,
            "parameters": dict(self.parameters),
            "timestamp": _ts(self.timestamp),
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "AttemptStarted":
        return cls(
            execution_id=payload["execution_id"],
            agent_id=payload["agent_id"],
            attempt_id=payload["attempt_id"],
            action=payload["action"],
            parameters=payload.get("parameters") or {},
            timestamp=_parse_ts(payload["timestamp"]),
        )


@dataclass(frozen=True)
class OutputProduced:
    """An attempt produced output (and optional artifacts)."""

    event_type: ClassVar[AgentEventType] = AgentEventType.OUTPUT_PRODUCED

    execution_id: str
    attempt_id: str
    output: str
    timestamp: datetime
    artifacts: dict[str, Any] = field(default_factory=dict)

    @property
    def entity_id(self) -> str:
        return self.execution_id

    def to_payload(self) -> dict[str, Any]:
        return {
            "execution_id": self.execution_id,
            "attempt_id": self.attempt_id,
            "output": self.output,
            "artifacts": dict(self.artifacts),
            "timestamp": _ts(self.timestamp),
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "OutputProduced":
        return cls(
            execution_id=payload["execution_id"],
            attempt_id=payload["attempt_id"],
            output=payload["output"],
            artifacts=payload.get("artifacts") or {},
            timestamp=_parse_ts(payload["timestamp"]),
        )


@dataclass(frozen=True)
class OutputValidated:
    """A validator judged an attempt's output."""

    event_type: ClassVar[AgentEventType] = AgentEventType.OUTPUT_VALIDATED

    execution_id: str
    attempt_id: str
    passed: bool
    timestamp: datetime
    validator: str = "self"
    criteria: tuple[str, ...] = ()
    errors: tuple[str, ...] = ()

    @property
    def entity_id(self) -> str:
        return self.execution_id

    def to_payload(self) -> dict[str, Any]:
        return {
            "execution_id": self.execution_id,
            "attempt_id": self.attempt_id,
            "passed": self.passed,
            "validator": self.validator,
            "criteria": list(self.criteria),
            "errors": list(self.errors),
            "timestamp": _ts(self.timestamp),
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "OutputValidated":
        return cls(
            execution_id=payload["execution_id"],
            attempt_id=payload["attempt_id"],
            passed=bool(payload["passed"]),
            validator=payload.get("validator", "self"),
            criteria=tuple(payload.get("criteria") or ()),
            errors=tuple(payload.get("errors") or ()),
            timestamp=_parse_ts(payload["timestamp"]),
        )


@dataclass(frozen=True)
class StopSignalSent:
    """Handoff signal from one agent to (optionally) a named next agent.

    Not scoped to an execution: the next agent declares its own intent.
    """

    event_type: ClassVar[AgentEventType] = AgentEventType.STOP_SIGNAL_SENT

    agent_id: str
    reason: str
    timestamp: datetime
    next_agent: str | None = None
    context: dict[str, Any] = field(default_factory=dict)

    @property
    def entity_id(self) -> None:
        return None

    def to_payload(self) -> dict[str, Any]:
        return {
            "agent_id": self.agent_id,
            "reason": self.reason,
            "next_agent": self.next_agent,
            "context": dict(self.context),
            "timestamp": _ts(self.timestamp),
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "StopSignalSent":
        return cls(
            agent_id=payload["agent_id"],
            reason=payload["reason"],
            next_agent=payload.get("next_agent"),
            context=payload.get("context") or {},
            timestamp=_parse_ts(payload["timestamp"]),
        )


@dataclass(frozen=True)
class PatternCaptured:
    """A (intent, approach, success rate) triple worth remembering."""

    event_type: ClassVar[AgentEventType] = AgentEventType.PATTERN_CAPTURED

    pattern_id: str
    intent_pattern: str
    approach: str
    success_rate: float
    timestamp: datetime
    example_event_ids: tuple[str, ...] = ()

    @property
    def entity_id(self) -> str:
        return self.pattern_id

    def to_payload(self) -> dict[str, Any]:
        return {
            "pattern_id": self.pattern_id,
            "intent_pattern": self.intent_pattern,
            "approach": self.approach,
            "success_rate": self.success_rate,
            "example_event_ids": list(self.example_event_ids),
            "timestamp": _ts(self.timestamp),
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "PatternCaptured":
        return cls(
            pattern_id=payload["pattern_id"],
            intent_pattern=payload["intent_pattern"],
            approach=payload["approach"],
            success_rate=float(payload["success_rate"]),
            example_event_ids=tuple(payload.get("example_event_ids") or ()),
            timestamp=_parse_ts(payload["timestamp"]),
        )


DomainEvent = (
    IntentDeclared
    | AttemptStarted
    | OutputProduced
    | OutputValidated
    | StopSignalSent
    | PatternCaptured
)

EVENT_CLASSES: dict[str, type[DomainEvent]] = {
    cls.event_type.value: cls
    for cls in (
        IntentDeclared,
        AttemptStarted,
        OutputProduced,
        OutputValidated,
        StopSignalSent,
        PatternCaptured,
    )
}


def encode_event(event: DomainEvent, event_id: str) -> StoredEvent:
    """Wrap a domain event in a log envelope (sequence assigned by the log)."""
    return StoredEvent(
        event_id=event_id,
        event_type=event.event_type.value,
        entity_id=event.entity_id,
        payload=event.to_payload(),
        created_at=event.timestamp,
    )


def decode_event(stored: StoredEvent) -> DomainEvent | None:
    """Rebuild the domain event from its envelope.

    Returns None for event types this version does not know.
    """
    cls = EVENT_CLASSES.get(stored.event_type)
    if cls is None:
        return None
    return cls.from_payload(stored.payload)
