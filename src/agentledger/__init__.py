"""
AgentLedger: event-sourced coordination for autonomous agents.

Every agent action is an immutable event; execution state is derived by
replaying those events, and captured patterns give agents context before
they act.

Example:
    from agentledger import Ledger
    from agentledger.infrastructure import CommandWorkUnit, ExitCodeValidator

    ledger = Ledger.in_memory()
    agent = ledger.agent(
        "lint-agent",
        work_unit=CommandWorkUnit(["ruff", "check", "."]),
        validator=ExitCodeValidator(),
        rmax=2,
    )
    outcome = agent.execute("Fix linting errors", "ruff check", next_agent="source-control-agent")
"""

# Application layer (orchestration)
from agentledger.application import (
    CoordinatedAgent,
    ExecutionEngine,
    KnowledgeQueryService,
    PatternMatcher,
    RecentExecutionsView,
    StateProjector,
)

# Configuration
from agentledger.config import LedgerConfig, load_config, load_identities

# Domain exceptions
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

# Domain interfaces (for type hints and custom implementations)
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
    ExecutionOutcome,
    ExecutionStatus,
    KnowledgePatternState,
    PatternMatch,
    StateKind,
    TransitionPolicy,
    ValidationResult,
    WorkOutput,
)

# Composition root
from agentledger.ledger import Ledger

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Composition
    "Ledger",
    "LedgerConfig",
    "load_config",
    "load_identities",
    # Application
    "CoordinatedAgent",
    "ExecutionEngine",
    "KnowledgeQueryService",
    "PatternMatcher",
    "RecentExecutionsView",
    "StateProjector",
    # Models
    "AgentContext",
    "AgentExecutionState",
    "AgentIdentity",
    "AgentStatus",
    "ExecutionOutcome",
    "ExecutionStatus",
    "KnowledgePatternState",
    "PatternMatch",
    "StateKind",
    "TransitionPolicy",
    "ValidationResult",
    "WorkOutput",
    # Interfaces
    "ContainerDaemonInterface",
    "EventLogInterface",
    "IdentityRegistryInterface",
    "ValidatorInterface",
    "WorkUnitInterface",
    # Exceptions
    "AgentLedgerError",
    "ConcurrentModification",
    "ConfigurationError",
    "ContainerDaemonError",
    "EntityNotFound",
    "InvalidTransition",
    "StorageUnavailable",
    "UnknownAgent",
]
