"""
Ledger: wires adapters to the engine and query services.

The only place that picks concrete storage; everything else receives the
log and registry by injection.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from agentledger.application import (
    CoordinatedAgent,
    ExecutionEngine,
    KnowledgeQueryService,
    PatternMatcher,
)
from agentledger.config import LedgerConfig, load_identities
from agentledger.domain.interfaces import (
    EventLogInterface,
    IdentityRegistryInterface,
    ValidatorInterface,
    WorkUnitInterface,
)
from agentledger.domain.models import AgentIdentity
from agentledger.infrastructure import (
    ContainerDaemonClient,
    FilesystemEventLog,
    FilesystemIdentityRegistry,
    InMemoryEventLog,
    InMemoryIdentityRegistry,
)

logger = logging.getLogger(__name__)


@dataclass
class Ledger:
    """A fully assembled agent ledger."""

    event_log: EventLogInterface
    identities: IdentityRegistryInterface
    config: LedgerConfig = field(default_factory=LedgerConfig)

    def __post_init__(self) -> None:
        self.engine = ExecutionEngine(
            self.event_log, self.identities, policy=self.config.transition_policy
        )
        self.matcher = PatternMatcher(
            self.event_log,
            fuzzy_threshold=self.config.fuzzy_threshold,
            embedding_top_k=self.config.embedding_top_k,
        )
        self.knowledge = KnowledgeQueryService(
            self.event_log,
            self.identities,
            pattern_matcher=self.matcher,
            coordination_window=self.config.coordination_window,
        )

    @classmethod
    def in_memory(cls, config: LedgerConfig | None = None) -> Ledger:
        return cls(InMemoryEventLog(), InMemoryIdentityRegistry(), config or LedgerConfig())

    @classmethod
    def from_config(cls, config: LedgerConfig) -> Ledger:
        """
        Build a ledger from configuration.

        Uses filesystem storage when ``storage_dir`` is set, memory otherwise,
        and provisions the agents listed in ``identities_file``.
        """
        if config.storage_dir is None:
            ledger = cls.in_memory(config)
        else:
            ledger = cls(
                FilesystemEventLog(config.storage_dir),
                FilesystemIdentityRegistry(config.storage_dir),
                config,
            )
        if config.identities_file is not None:
            ledger.provision(load_identities(config.identities_file))
        return ledger

    def provision(self, identities: Iterable[AgentIdentity]) -> int:
        """Register agents that are not registered yet. Returns how many were added."""
        added = 0
        for identity in identities:
            if self.identities.get(identity.agent_id) is None:
                self.identities.register(identity)
                added += 1
        if added:
            logger.info("Provisioned %d agent(s)", added)
        return added

    def agent(
        self,
        agent_id: str,
        work_unit: WorkUnitInterface,
        validator: ValidatorInterface,
        rmax: int = 0,
    ) -> CoordinatedAgent:
        return CoordinatedAgent(
            agent_id, self.engine, self.knowledge, work_unit, validator, rmax=rmax
        )

    def daemon_client(self) -> ContainerDaemonClient:
        return ContainerDaemonClient(
            self.config.daemon_url,
            token=self.config.daemon_token,
            timeout=self.config.daemon_timeout,
        )
