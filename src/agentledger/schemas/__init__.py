"""AgentLedger JSON Schema definitions and validation utilities.

Schemas:
    - config.schema.json: Ledger configuration (storage, matching, daemon)
    - identities.schema.json: Agent provisioning records

Usage:
    from agentledger.schemas import validate_config

    with open("agentledger.json") as f:
        data = json.load(f)
    validate_config(data)  # Raises jsonschema.ValidationError if invalid
"""

from __future__ import annotations

import json
from importlib.resources import files
from typing import Any

import jsonschema


def _load_schema(name: str) -> dict[str, Any]:
    """Load a JSON schema from the schemas package.

    Args:
        name: Schema filename (e.g., 'config.schema.json')

    Returns:
        Parsed JSON schema as a dictionary
    """
    schema_text = files("agentledger.schemas").joinpath(name).read_text()
    result: dict[str, Any] = json.loads(schema_text)
    return result


def get_config_schema() -> dict[str, Any]:
    return _load_schema("config.schema.json")


def get_identities_schema() -> dict[str, Any]:
    return _load_schema("identities.schema.json")


def validate_config(data: dict[str, Any]) -> None:
    """Validate a ledger configuration against the schema.

    Raises:
        jsonschema.ValidationError: If validation fails
    """
    jsonschema.validate(data, get_config_schema())


def validate_identities(data: dict[str, Any]) -> None:
    """Validate agent provisioning records against the schema.

    Raises:
        jsonschema.ValidationError: If validation fails
    """
    jsonschema.validate(data, get_identities_schema())


__all__ = [
    "get_config_schema",
    "get_identities_schema",
    "validate_config",
    "validate_identities",
]
