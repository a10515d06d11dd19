"""
Agent identity registry implementations.

Status updates for one agent are serialized by the agent's lock stripe, so two
executions updating the same agent at once never lose a write. Callers doing
their own read-modify-write pass ``expected_version`` to detect races.
"""

import json
import logging
import threading
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Any

from agentledger.domain.exceptions import (
    ConcurrentModification,
    StorageUnavailable,
    UnknownAgent,
)
from agentledger.domain.interfaces import IdentityRegistryInterface
from agentledger.domain.models import AgentIdentity, AgentStatus

logger = logging.getLogger(__name__)

LOCK_STRIPES = 16


class InMemoryIdentityRegistry(IdentityRegistryInterface):
    """Simple in-memory registry for testing."""

    def __init__(self) -> None:
        self._identities: dict[str, AgentIdentity] = {}
        self._locks = tuple(threading.Lock() for _ in range(LOCK_STRIPES))
        self._registry_lock = threading.Lock()

    def _lock_for(self, agent_id: str) -> threading.Lock:
        return self._locks[hash(agent_id) % LOCK_STRIPES]

    def register(self, identity: AgentIdentity) -> AgentIdentity:
        with self._registry_lock:
            if identity.agent_id in self._identities:
                raise ValueError(f"Agent already registered: {identity.agent_id}")
            self._identities[identity.agent_id] = identity
        return identity

    def get(self, agent_id: str) -> AgentIdentity | None:
        with self._registry_lock:
            return self._identities.get(agent_id)

    def update_status(
        self,
        agent_id: str,
        status: AgentStatus,
        at: datetime,
        expected_version: int | None = None,
    ) -> AgentIdentity:
        with self._lock_for(agent_id):
            current = self.get(agent_id)
            if current is None:
                raise UnknownAgent(agent_id)
            if expected_version is not None and expected_version != current.version:
                raise ConcurrentModification(agent_id, expected_version, current.version)
            updated = replace(
                current, status=status, last_active_at=at, version=current.version + 1
            )
            with self._registry_lock:
                self._identities[agent_id] = updated
        logger.debug("Agent %s is now %s (v%d)", agent_id, status.value, updated.version)
        return updated

    def list_agents(self, status: AgentStatus | None = None) -> list[AgentIdentity]:
        with self._registry_lock:
            snapshot = list(self._identities.values())
        return sorted(
            (i for i in snapshot if status is None or i.status == status),
            key=lambda i: i.agent_id,
        )


class FilesystemIdentityRegistry(IdentityRegistryInterface):
    """
    Persistent registry stored as one JSON document.

    Directory structure:
    {base_path}/
        identities.json  # agent_id -> identity record

    Writes use write-to-temp + rename. A single lock guards the document,
    which also serializes updates per agent.
    """

    def __init__(self, base_path: Path) -> None:
        self.base_path = Path(base_path)
        self.path = self.base_path / "identities.json"
        self._lock = threading.Lock()
        try:
            self.base_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageUnavailable(
                f"Cannot create registry at {self.base_path}: {e}"
            ) from e

    def register(self, identity: AgentIdentity) -> AgentIdentity:
        with self._lock:
            data = self._load()
            if identity.agent_id in data:
                raise ValueError(f"Agent already registered: {identity.agent_id}")
            data[identity.agent_id] = self._identity_to_dict(identity)
            self._save(data)
        return identity

    def get(self, agent_id: str) -> AgentIdentity | None:
        with self._lock:
            record = self._load().get(agent_id)
        return self._dict_to_identity(record) if record else None

    def update_status(
        self,
        agent_id: str,
        status: AgentStatus,
        at: datetime,
        expected_version: int | None = None,
    ) -> AgentIdentity:
        with self._lock:
            data = self._load()
            record = data.get(agent_id)
            if record is None:
                raise UnknownAgent(agent_id)
            current = self._dict_to_identity(record)
            if expected_version is not None and expected_version != current.version:
                raise ConcurrentModification(agent_id, expected_version, current.version)
            updated = replace(
                current, status=status, last_active_at=at, version=current.version + 1
            )
            data[agent_id] = self._identity_to_dict(updated)
            self._save(data)
        logger.debug("Agent %s is now %s (v%d)", agent_id, status.value, updated.version)
        return updated

    def list_agents(self, status: AgentStatus | None = None) -> list[AgentIdentity]:
        with self._lock:
            records = self._load()
        identities = (self._dict_to_identity(r) for r in records.values())
        return sorted(
            (i for i in identities if status is None or i.status == status),
            key=lambda i: i.agent_id,
        )

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path) as f:
                result: dict[str, Any] = json.load(f)
                return result
        except (OSError, json.JSONDecodeError) as e:
            raise StorageUnavailable(f"Cannot read {self.path}: {e}") from e

    def _save(self, data: dict[str, Any]) -> None:
        """Atomically update identities.json using write-to-temp + rename."""
        temp_path = self.path.with_suffix(".tmp")
        try:
            with open(temp_path, "w") as f:
                json.dump(data, f, indent=2)
            temp_path.replace(self.path)
        except OSError as e:
            raise StorageUnavailable(f"Cannot write {self.path}: {e}") from e

    def _identity_to_dict(self, identity: AgentIdentity) -> dict[str, Any]:
        return {
            "agent_id": identity.agent_id,
            "name": identity.name,
            "role": identity.role,
            "capabilities": sorted(identity.capabilities),
            "status": identity.status.value,
            "last_active_at": (
                identity.last_active_at.isoformat() if identity.last_active_at else None
            ),
            "version": identity.version,
        }

    def _dict_to_identity(self, data: dict[str, Any]) -> AgentIdentity:
        last_active = data.get("last_active_at")
        return AgentIdentity(
            agent_id=data["agent_id"],
            name=data["name"],
            role=data["role"],
            capabilities=frozenset(data.get("capabilities", ())),
            status=AgentStatus(data.get("status", AgentStatus.IDLE.value)),
            last_active_at=datetime.fromisoformat(last_active) if last_active else None,
            version=data.get("version", 0),
        )
