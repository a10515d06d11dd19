"""Configuration loading for AgentLedger."""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from dataclasses import dataclass, replace
from datetime import timedelta
from pathlib import Path
from typing import Any

import jsonschema

from agentledger.domain.exceptions import ConfigurationError
from agentledger.domain.models import AgentIdentity, AgentStatus, TransitionPolicy
from agentledger.schemas import validate_config, validate_identities

DEFAULT_DAEMON_URL = "http://localhost:9092"
DEFAULT_DAEMON_TIMEOUT = 30.0

ENV_STORAGE_DIR = "AGENTLEDGER_STORAGE_DIR"
ENV_DAEMON_URL = "CONTAINER_DAEMON_URL"
ENV_DAEMON_TOKEN = "CONTAINER_DAEMON_TOKEN"
ENV_DAEMON_TIMEOUT = "CONTAINER_DAEMON_TIMEOUT"


@dataclass(frozen=True)
class LedgerConfig:
    """Settings for assembling a ledger.

    ``storage_dir`` of None means in-memory storage.
    """

    storage_dir: Path | None = None
    identities_file: Path | None = None
    transition_policy: TransitionPolicy = TransitionPolicy.STRICT
    fuzzy_threshold: float = 0.6
    embedding_top_k: int = 5
    coordination_window_seconds: int = 3600
    daemon_url: str = DEFAULT_DAEMON_URL
    daemon_token: str = ""
    daemon_timeout: float = DEFAULT_DAEMON_TIMEOUT

    @property
    def coordination_window(self) -> timedelta:
        return timedelta(seconds=self.coordination_window_seconds)


def _read_json(path: Path) -> Any:
    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {path}")
    try:
        with open(path) as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in {path}: {e}") from e


def _resolve(base: Path, value: str) -> Path:
    path = Path(value).expanduser()
    return path if path.is_absolute() else base / path


def _from_dict(data: dict[str, Any], base: Path) -> LedgerConfig:
    matching = data.get("matching", {})
    coordination = data.get("coordination", {})
    daemon = data.get("daemon", {})
    defaults = LedgerConfig()

    return LedgerConfig(
        storage_dir=_resolve(base, data["storage_dir"]) if "storage_dir" in data else None,
        identities_file=(
            _resolve(base, data["identities_file"]) if "identities_file" in data else None
        ),
        transition_policy=TransitionPolicy(
            data.get("transition_policy", defaults.transition_policy.value)
        ),
        fuzzy_threshold=float(matching.get("fuzzy_threshold", defaults.fuzzy_threshold)),
        embedding_top_k=matching.get("embedding_top_k", defaults.embedding_top_k),
        coordination_window_seconds=coordination.get(
            "window_seconds", defaults.coordination_window_seconds
        ),
        daemon_url=daemon.get("url", defaults.daemon_url),
        daemon_token=daemon.get("token", defaults.daemon_token),
        daemon_timeout=float(daemon.get("timeout", defaults.daemon_timeout)),
    )


def apply_env_overrides(
    config: LedgerConfig, environ: Mapping[str, str] | None = None
) -> LedgerConfig:
    """
    Override settings from environment variables.

    Args:
        config: Base configuration
        environ: Environment mapping (default: os.environ)

    Raises:
        ConfigurationError: If CONTAINER_DAEMON_TIMEOUT is not a positive number
    """
    env = os.environ if environ is None else environ
    overrides: dict[str, Any] = {}

    if env.get(ENV_STORAGE_DIR):
        overrides["storage_dir"] = Path(env[ENV_STORAGE_DIR]).expanduser()
    if env.get(ENV_DAEMON_URL):
        overrides["daemon_url"] = env[ENV_DAEMON_URL]
    if ENV_DAEMON_TOKEN in env:
        overrides["daemon_token"] = env[ENV_DAEMON_TOKEN]
    if env.get(ENV_DAEMON_TIMEOUT):
        try:
            timeout = float(env[ENV_DAEMON_TIMEOUT])
        except ValueError as e:
            raise ConfigurationError(
                f"{ENV_DAEMON_TIMEOUT} must be a number, got {env[ENV_DAEMON_TIMEOUT]!r}"
            ) from e
        if timeout <= 0:
            raise ConfigurationError(f"{ENV_DAEMON_TIMEOUT} must be positive")
        overrides["daemon_timeout"] = timeout

    return replace(config, **overrides) if overrides else config


def load_config(
    path: Path | None = None, environ: Mapping[str, str] | None = None
) -> LedgerConfig:
    """
    Load ledger configuration from a JSON file plus environment overrides.

    Relative paths in the file are resolved against the file's directory.

    Args:
        path: Path to the configuration file (None for defaults only)
        environ: Environment mapping (default: os.environ)

    Returns:
        The effective configuration

    Raises:
        ConfigurationError: If the file cannot be read or fails validation
    """
    if path is None:
        return apply_env_overrides(LedgerConfig(), environ)

    data = _read_json(path)
    if not isinstance(data, dict):
        raise ConfigurationError(f"Expected dict in {path}, got {type(data).__name__}")
    try:
        validate_config(data)
    except jsonschema.ValidationError as e:
        raise ConfigurationError(f"Invalid configuration in {path}: {e.message}") from e

    return apply_env_overrides(_from_dict(data, path.parent), environ)


def load_identities(path: Path) -> list[AgentIdentity]:
    """
    Load agent provisioning records.

    Args:
        path: Path to an identities JSON file ({"agents": [...]})

    Returns:
        Identities in file order

    Raises:
        ConfigurationError: If the file is invalid or repeats an agent_id
    """
    data = _read_json(path)
    if not isinstance(data, dict):
        raise ConfigurationError(f"Expected dict in {path}, got {type(data).__name__}")
    try:
        validate_identities(data)
    except jsonschema.ValidationError as e:
        raise ConfigurationError(f"Invalid identities in {path}: {e.message}") from e

    identities: list[AgentIdentity] = []
    seen: set[str] = set()
    for record in data["agents"]:
        agent_id = record["agent_id"]
        if agent_id in seen:
            raise ConfigurationError(f"Duplicate agent_id in {path}: {agent_id}")
        seen.add(agent_id)
        identities.append(
            AgentIdentity(
                agent_id=agent_id,
                name=record["name"],
                role=record["role"],
                capabilities=frozenset(record.get("capabilities", [])),
                status=AgentStatus(record.get("status", AgentStatus.IDLE.value)),
            )
        )
    return identities
