"""
Persistence adapters for the event log and identity registry.
"""

from agentledger.infrastructure.persistence.event_log import (
    FilesystemEventLog,
    InMemoryEventLog,
)
from agentledger.infrastructure.persistence.identities import (
    FilesystemIdentityRegistry,
    InMemoryIdentityRegistry,
)

__all__ = [
    "InMemoryEventLog",
    "FilesystemEventLog",
    "InMemoryIdentityRegistry",
    "FilesystemIdentityRegistry",
]
