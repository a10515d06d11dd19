"""
Domain layer for the agent ledger.

Contains events, projected states, the execution state machine and ports,
with no external dependencies.
"""

from agentledger.domain.events import (
    AgentEventType,
    AttemptStarted,
    DomainEvent,
    IntentDeclared,
    OutputProduced,
    OutputValidated,
    PatternCaptured,
    StopSignalSent,
    StoredEvent,
)
from agentledger.domain.exceptions import (
    AgentLedgerError,
    ConcurrentModification,
    ConfigurationError,
    ContainerDaemonError,
    EntityNotFound,
    InvalidTransition,
    StorageUnavailable,
    UnknownAgent,
)
from agentledger.domain.interfaces import (
    ContainerDaemonInterface,
    EventLogInterface,
    IdentityRegistryInterface,
    ValidatorInterface,
    WorkUnitInterface,
)
from agentledger.domain.models import (
    AgentContext,
    AgentExecutionState,
    AgentIdentity,
    AgentStatus,
    ExecutionStatus,
    KnowledgePatternState,
    PatternMatch,
    StateKind,
    TransitionPolicy,
)

__all__ = [
    # Events
    "AgentEventType",
    "StoredEvent",
    "DomainEvent",
    "IntentDeclared",
    "AttemptStarted",
    "OutputProduced",
    "OutputValidated",
    "StopSignalSent",
    "PatternCaptured",
    # Models
    "AgentExecutionState",
    "KnowledgePatternState",
    "AgentIdentity",
    "AgentStatus",
    "ExecutionStatus",
    "StateKind",
    "TransitionPolicy",
    "PatternMatch",
    "AgentContext",
    # Interfaces
    "EventLogInterface",
    "IdentityRegistryInterface",
    "WorkUnitInterface",
    "ValidatorInterface",
    "ContainerDaemonInterface",
    # Exceptions
    "AgentLedgerError",
    "StorageUnavailable",
    "EntityNotFound",
    "InvalidTransition",
    "UnknownAgent",
    "ConcurrentModification",
    "ConfigurationError",
    "ContainerDaemonError",
]
