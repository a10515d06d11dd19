"""Tests for configuration and identity file loading."""

import json
from datetime import timedelta
from pathlib import Path

import pytest

from agentledger.config import (
    LedgerConfig,
    apply_env_overrides,
    load_config,
    load_identities,
)
from agentledger.domain.exceptions import ConfigurationError
from agentledger.domain.models import AgentStatus, TransitionPolicy
from agentledger.schemas import get_config_schema, get_identities_schema


def write_json(path: Path, data) -> Path:  # noqa: ANN001
    path.write_text(json.dumps(data))
    return path


class TestLoadConfig:
    """Tests for load_config()."""

    def test_defaults_without_file(self) -> None:
        config = load_config(environ={})

        assert config == LedgerConfig()
        assert config.storage_dir is None
        assert config.transition_policy == TransitionPolicy.STRICT
        assert config.fuzzy_threshold == 0.6
        assert config.coordination_window == timedelta(hours=1)
        assert config.daemon_url == "http://localhost:9092"

    def test_full_file(self, tmp_path) -> None:  # noqa: ANN001
        path = write_json(
            tmp_path / "agentledger.json",
            {
                "storage_dir": ".ledger",
                "identities_file": "agents.json",
                "transition_policy": "permissive",
                "matching": {"fuzzy_threshold": 0.8, "embedding_top_k": 3},
                "coordination": {"window_seconds": 600},
                "daemon": {"url": "http://daemon:9092", "token": "t", "timeout": 5},
            },
        )

        config = load_config(path, environ={})

        assert config.storage_dir == tmp_path / ".ledger"
        assert config.identities_file == tmp_path / "agents.json"
        assert config.transition_policy == TransitionPolicy.PERMISSIVE
        assert config.fuzzy_threshold == 0.8
        assert config.embedding_top_k == 3
        assert config.coordination_window == timedelta(minutes=10)
        assert config.daemon_url == "http://daemon:9092"
        assert config.daemon_token == "t"
        assert config.daemon_timeout == 5.0

    def test_absolute_storage_dir_kept(self, tmp_path) -> None:  # noqa: ANN001
        storage = tmp_path / "elsewhere"
        path = write_json(tmp_path / "c.json", {"storage_dir": str(storage)})

        assert load_config(path, environ={}).storage_dir == storage

    def test_missing_file(self, tmp_path) -> None:  # noqa: ANN001
        with pytest.raises(ConfigurationError, match="not found"):
            load_config(tmp_path / "missing.json", environ={})

    def test_invalid_json(self, tmp_path) -> None:  # noqa: ANN001
        path = tmp_path / "c.json"
        path.write_text("{not json")

        with pytest.raises(ConfigurationError, match="Invalid JSON"):
            load_config(path, environ={})

    def test_not_an_object(self, tmp_path) -> None:  # noqa: ANN001
        path = write_json(tmp_path / "c.json", ["storage_dir"])

        with pytest.raises(ConfigurationError, match="Expected dict"):
            load_config(path, environ={})

    @pytest.mark.parametrize(
        "data",
        [
            {"unknown_key": True},
            {"transition_policy": "lenient"},
            {"matching": {"fuzzy_threshold": 1.5}},
            {"coordination": {"window_seconds": 0}},
            {"daemon": {"timeout": 0}},
        ],
    )
    def test_schema_violations(self, tmp_path, data) -> None:  # noqa: ANN001
        path = write_json(tmp_path / "c.json", data)

        with pytest.raises(ConfigurationError, match="Invalid configuration"):
            load_config(path, environ={})


class TestEnvOverrides:
    """Tests for apply_env_overrides()."""

    def test_daemon_settings(self) -> None:
        config = apply_env_overrides(
            LedgerConfig(),
            {
                "CONTAINER_DAEMON_URL": "http://remote:9092",
                "CONTAINER_DAEMON_TOKEN": "s3cret",
                "CONTAINER_DAEMON_TIMEOUT": "12.5",
            },
        )

        assert config.daemon_url == "http://remote:9092"
        assert config.daemon_token == "s3cret"
        assert config.daemon_timeout == 12.5

    def test_storage_dir(self, tmp_path) -> None:  # noqa: ANN001
        config = apply_env_overrides(
            LedgerConfig(), {"AGENTLEDGER_STORAGE_DIR": str(tmp_path)}
        )

        assert config.storage_dir == tmp_path

    def test_env_wins_over_file(self, tmp_path) -> None:  # noqa: ANN001
        path = write_json(tmp_path / "c.json", {"daemon": {"url": "http://file:1"}})

        config = load_config(path, environ={"CONTAINER_DAEMON_URL": "http://env:2"})

        assert config.daemon_url == "http://env:2"

    def test_empty_environment_changes_nothing(self) -> None:
        config = LedgerConfig()

        assert apply_env_overrides(config, {}) is config

    @pytest.mark.parametrize("value", ["soon", "0", "-3"])
    def test_invalid_timeout(self, value: str) -> None:
        with pytest.raises(ConfigurationError, match="CONTAINER_DAEMON_TIMEOUT"):
            apply_env_overrides(LedgerConfig(), {"CONTAINER_DAEMON_TIMEOUT": value})


class TestLoadIdentities:
    """Tests for load_identities()."""

    def test_valid_file(self, tmp_path) -> None:  # noqa: ANN001
        path = write_json(
            tmp_path / "agents.json",
            {
                "agents": [
                    {
                        "agent_id": "lint-agent",
                        "name": "Lint Agent",
                        "role": "linter",
                        "description": "Fixes code style",
                        "capabilities": ["pint", "style-fixes"],
                    },
                    {
                        "agent_id": "source-control-agent",
                        "name": "Source Control Agent",
                        "role": "committer",
                        "status": "blocked",
                    },
                ]
            },
        )

        identities = load_identities(path)

        assert [i.agent_id for i in identities] == ["lint-agent", "source-control-agent"]
        assert identities[0].capabilities == frozenset({"pint", "style-fixes"})
        assert identities[0].status == AgentStatus.IDLE
        assert identities[1].status == AgentStatus.BLOCKED

    def test_duplicate_agent_id(self, tmp_path) -> None:  # noqa: ANN001
        agent = {"agent_id": "lint-agent", "name": "Lint Agent", "role": "linter"}
        path = write_json(tmp_path / "agents.json", {"agents": [agent, agent]})

        with pytest.raises(ConfigurationError, match="Duplicate agent_id"):
            load_identities(path)

    def test_missing_required_field(self, tmp_path) -> None:  # noqa: ANN001
        path = write_json(
            tmp_path / "agents.json", {"agents": [{"agent_id": "lint-agent"}]}
        )

        with pytest.raises(ConfigurationError, match="Invalid identities"):
            load_identities(path)


class TestSchemas:
    """Tests for the packaged JSON schemas."""

    def test_schemas_load(self) -> None:
        assert get_config_schema()["title"] == "AgentLedger configuration"
        assert get_identities_schema()["required"] == ["agents"]
