"""
Domain interfaces (Ports) for the agent ledger.

These abstract base classes define the contracts that adapters must satisfy.
They have no external dependencies.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Mapping

    from agentledger.domain.events import StoredEvent
    from agentledger.domain.models import (
        AgentIdentity,
        AgentStatus,
        ValidationResult,
        WorkOutput,
    )


class EventLogInterface(ABC):
    """
    Port for the append-only event log.

    Implementations never expose update or delete. Appends for one entity id
    are read back in append order; ``sequence`` numbers are assigned by the
    log and increase strictly with every append.
    """

    @abstractmethod
    def append(self, event: "StoredEvent") -> str:
        """
        Append an event.

        Args:
            event: The event envelope (its ``sequence`` is ignored and reassigned)

        Returns:
            The event_id

        Raises:
            StorageUnavailable: If durable storage cannot be reached
        """
        pass

    @abstractmethod
    def query_by_entity(self, entity_id: str) -> list["StoredEvent"]:
        """
        All events for one entity id, oldest first (append order).

        Returns:
            Possibly empty list; calling again replays the same sequence
        """
        pass

    @abstractmethod
    def query_by_type(
        self,
        event_type: str,
        filters: "Mapping[str, Any] | None" = None,
        since: datetime | None = None,
        until: datetime | None = None,
        limit: int | None = None,
    ) -> list["StoredEvent"]:
        """
        Events of one kind, newest first.

        Args:
            event_type: The event kind value (e.g. "IntentDeclared")
            filters: Payload field -> required value (equality)
            since: Keep events created at or after this instant
            until: Keep events created at or before this instant
            limit: Maximum number of events to return

        Returns:
            Events ordered by created_at descending, ties by sequence descending
        """
        pass

    @abstractmethod
    def all_events(self) -> list["StoredEvent"]:
        """Every event in append order."""
        pass

    @abstractmethod
    def position(self) -> int:
        """Sequence number of the latest appended event (0 if empty)."""
        pass


class IdentityRegistryInterface(ABC):
    """
    Port for the agent identity registry.

    Status updates for one agent id are serialized; ``expected_version``
    enables optimistic concurrency for read-modify-write callers.
    """

    @abstractmethod
    def register(self, identity: "AgentIdentity") -> "AgentIdentity":
        """
        Provision a new agent.

        Raises:
            ValueError: If the agent id is already registered
        """
        pass

    @abstractmethod
    def get(self, agent_id: str) -> "AgentIdentity | None":
        """Look up an agent, None if not registered."""
        pass

    @abstractmethod
    def update_status(
        self,
        agent_id: str,
        status: "AgentStatus",
        at: datetime,
        expected_version: int | None = None,
    ) -> "AgentIdentity":
        """
        Set an agent's status and last_active_at, bumping its version.

        Args:
            agent_id: Agent to update
            status: New status
            at: Activity timestamp
            expected_version: If given, the update only applies when the
                stored version still equals it

        Returns:
            The updated identity

        Raises:
            UnknownAgent: If the agent is not registered
            ConcurrentModification: If expected_version is stale
        """
        pass

    @abstractmethod
    def list_agents(self, status: "AgentStatus | None" = None) -> list["AgentIdentity"]:
        """All registered agents (optionally only those with ``status``), by agent_id."""
        pass


class WorkUnitInterface(ABC):
    """
    Port for the unit of work an agent performs during an attempt.

    Implementations may run a local tool or a remote container task.
    Exceptions propagate to the agent's caller.
    """

    @abstractmethod
    def perform(self, action: str, parameters: dict[str, Any]) -> "WorkOutput":
        """
        Run the work for one attempt.

        Args:
            action: Human-readable description of what is being attempted
            parameters: Action parameters recorded on the AttemptStarted event

        Returns:
            The produced output
        """
        pass


class ValidatorInterface(ABC):
    """Port for judging a work output. Deterministic validators only."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Name recorded as the ``validator`` of OutputValidated events."""
        pass

    @abstractmethod
    def validate(self, output: "WorkOutput") -> "ValidationResult":
        """Return passed=True/False with the criteria checked and any errors."""
        pass


class ContainerDaemonInterface(ABC):
    """
    Port for the remote container daemon that executes agent tasks.

    Methods raise ContainerDaemonError on connection, auth, not-found and
    other HTTP failures (``is_reachable`` returns False instead).
    """

    @abstractmethod
    def health(self) -> dict[str, Any]:
        """Daemon health report."""
        pass

    @abstractmethod
    def is_reachable(self) -> bool:
        """True if the health endpoint answers."""
        pass

    @abstractmethod
    def list_containers(self, status: str | None = None) -> list[dict[str, Any]]:
        """Known containers, optionally filtered by status."""
        pass

    @abstractmethod
    def spawn(
        self,
        repo: str,
        task: str,
        branch: str | None = None,
        timeout: int | None = None,
    ) -> dict[str, Any]:
        """Start a container; returns at least ``id`` and ``status``."""
        pass

    @abstractmethod
    def get(self, container_id: str) -> dict[str, Any]:
        """Container status with optional ``exit_code``, ``output``, ``error``."""
        pass

    @abstractmethod
    def kill(self, container_id: str) -> dict[str, Any]:
        """Stop a container; returns ``success`` and optional ``message``."""
        pass

    @abstractmethod
    def logs(self, container_id: str, tail: int | None = None) -> str:
        """Container log text, optionally only the last ``tail`` lines."""
        pass
