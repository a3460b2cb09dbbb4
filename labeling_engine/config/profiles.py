"""
Provider connection and model profile catalog.

Connections and profiles are owned by an external collaborator; this module
only reads them, either from a YAML file or from already built models.

Example ``profiles.yaml``::

    connections:
      - id: openai-main
        provider_id: openai
        api_key: ${OPENAI_API_KEY}
    profiles:
      - id: gpt4o-mini
        provider_connection_id: openai-main
        model_id: gpt-4o-mini
        default_prompt: "Classify the sentiment of: {{title}}"
"""

import os
import re
from pathlib import Path
from typing import Any, Iterable

import structlog
import yaml
from pydantic import ValidationError

from ..errors import ConfigurationError
from ..models import ModelProfile, ProviderConnection

logger = structlog.get_logger()

_ENV_REF = re.compile(r"^\$\{([A-Za-z_][A-Za-z0-9_]*)\}$")


def _expand_env(value: Any) -> Any:
    """Expand a whole-string ``${ENV_VAR}`` reference."""
    if isinstance(value, str):
        match = _ENV_REF.match(value.strip())
        if match:
            return os.environ.get(match.group(1)) or None
    return value


class ProfileCatalog:
    """Lookup of provider connections and model profiles by id."""

    def __init__(
        self,
        connections: Iterable[ProviderConnection] = (),
        profiles: Iterable[ModelProfile] = (),
    ):
        self._connections: dict[str, ProviderConnection] = {c.id: c for c in connections}
        self._profiles: dict[str, ModelProfile] = {p.id: p for p in profiles}

    @property
    def connections(self) -> list[ProviderConnection]:
        return list(self._connections.values())

    @property
    def profiles(self) -> list[ModelProfile]:
        return list(self._profiles.values())

    def get_profile(self, profile_id: str) -> ModelProfile | None:
        return self._profiles.get(profile_id)

    def get_connection(self, connection_id: str) -> ProviderConnection | None:
        return self._connections.get(connection_id)

    def connection_for(self, profile: ModelProfile) -> ProviderConnection | None:
        """Get the parent connection of a profile."""
        return self._connections.get(profile.provider_connection_id)

    def active_profiles(self) -> list[ModelProfile]:
        """Profiles that are active and whose connection is active."""
        active = []
        for profile in self._profiles.values():
            connection = self.connection_for(profile)
            if profile.is_active and connection is not None and connection.is_active:
                active.append(profile)
        return active

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProfileCatalog":
        """Build a catalog from parsed YAML/JSON data."""
        connections = []
        for raw in data.get("connections") or []:
            raw = {key: _expand_env(value) for key, value in raw.items()}
            connections.append(ProviderConnection(**raw))

        profiles = [ModelProfile(**raw) for raw in data.get("profiles") or []]
        return cls(connections, profiles)


def load_catalog(path: Path | str) -> ProfileCatalog:
    """
    Load a profile catalog from a YAML file.

    Raises:
        ConfigurationError: If the file is missing or malformed
    """
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(f"Profiles file not found: {path}")

    with open(path, encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid profiles file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Profiles file {path} must contain a mapping")

    try:
        catalog = ProfileCatalog.from_dict(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid profiles file {path}: {e}") from e

    logger.info(
        "profiles_loaded",
        path=str(path),
        connections=len(catalog.connections),
        profiles=len(catalog.profiles),
    )
    return catalog
