"""
Domain exceptions for the agent ledger.

Read-side queries never raise these for missing data; they return empty
results instead. Storage faults propagate to the direct caller unchanged.
"""


class AgentLedgerError(Exception):
    """Base class for all ledger errors."""


class StorageUnavailable(AgentLedgerError):
    """
    Raised when the event log or identity registry cannot reach storage.

    Fatal to the calling operation; the ledger never retries internally.
    """


class EntityNotFound(AgentLedgerError):
    """Raised when a projection is requested for an id with no events of that kind."""

    def __init__(self, entity_id: str, kind: str):
        """
        Args:
            entity_id: The id that has no events
            kind: The state kind that was requested
        """
        super().__init__(f"No {kind} events found for entity: {entity_id}")
        self.entity_id = entity_id
        self.kind = kind


class InvalidTransition(AgentLedgerError):
    """
    Raised by the execution engine under the strict transition policy when
    an event does not fit the execution's current status.

    Nothing is appended when this is raised.
    """

    def __init__(self, event_type: str, entity_id: str | None, reason: str):
        super().__init__(f"{event_type} rejected for {entity_id}: {reason}")
        self.event_type = event_type
        self.entity_id = entity_id
        self.reason = reason


class UnknownAgent(AgentLedgerError):
    """Raised when an identity operation names an agent that was never registered."""

    def __init__(self, agent_id: str):
        super().__init__(f"Agent not registered: {agent_id}")
        self.agent_id = agent_id


class ConcurrentModification(AgentLedgerError):
    """Raised when an identity update carries a stale version token."""

    def __init__(self, agent_id: str, expected_version: int, actual_version: int):
        super().__init__(
            f"Agent {agent_id} was modified concurrently "
            f"(expected version {expected_version}, found {actual_version})"
        )
        self.agent_id = agent_id
        self.expected_version = expected_version
        self.actual_version = actual_version


class ConfigurationError(AgentLedgerError):
    """Raised when configuration files are invalid or missing."""


class ContainerDaemonError(AgentLedgerError):
    """
    Raised by the container daemon client.

    ``status_code`` is 0 for connection failures, otherwise the HTTP status.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 0,
        response: dict | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response = response

    @classmethod
    def connection_failed(cls, url: str) -> "ContainerDaemonError":
        return cls(f"Failed to connect to container daemon at {url}", 0)

    @classmethod
    def authentication_failed(cls) -> "ContainerDaemonError":
        return cls("Authentication failed - invalid or missing token", 401)

    @classmethod
    def not_found(cls, resource: str) -> "ContainerDaemonError":
        return cls(f"Container not found: {resource}", 404)

    @classmethod
    def from_response(cls, status_code: int, body: dict) -> "ContainerDaemonError":
        message = body.get("error") or body.get("message") or "Unknown error"
        return cls(message, status_code, body)

    @property
    def is_connection_error(self) -> bool:
        return self.status_code == 0

    @property
    def is_auth_error(self) -> bool:
        return self.status_code == 401

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404
