"""
Infrastructure layer for the agent ledger.

Contains adapters for external concerns (persistence, the container daemon,
work units).
"""

from agentledger.infrastructure.daemon import ContainerDaemonClient
from agentledger.infrastructure.persistence import (
    FilesystemEventLog,
    FilesystemIdentityRegistry,
    InMemoryEventLog,
    InMemoryIdentityRegistry,
)
from agentledger.infrastructure.work_units import (
    CommandWorkUnit,
    ContainerWorkUnit,
    ExitCodeValidator,
    StaticWorkUnit,
)

__all__ = [
    # Persistence
    "InMemoryEventLog",
    "FilesystemEventLog",
    "InMemoryIdentityRegistry",
    "FilesystemIdentityRegistry",
    # Container daemon
    "ContainerDaemonClient",
    # Work units
    "CommandWorkUnit",
    "StaticWorkUnit",
    "ContainerWorkUnit",
    "ExitCodeValidator",
]
