"""
Provider manager.

Validates a model selection up front and routes every (item, profile) unit of
work to the client for the profile's connection.
"""

from typing import Callable

import structlog

from ..config.profiles import ProfileCatalog
from ..errors import ConfigurationError
from ..models import ModelProfile, ProviderConnection, ResolvedProfile, WorkItem
from ..prompts import request_prompt
from .anthropic_client import AnthropicClient
from .base import (
    BaseProviderClient,
    MissingCredentialsError,
    ProviderConnectionError,
    ProviderError,
)
from .catalog import get_provider
from .groq_client import GroqClient
from .ollama_client import OllamaClient
from .openai_client import OpenAICompatibleClient

logger = structlog.get_logger()

ClientFactory = Callable[[ProviderConnection], BaseProviderClient]


def create_client(connection: ProviderConnection) -> BaseProviderClient:
    """
    Build the client for a provider connection.

    Raises:
        ProviderError: If the provider is unknown or credentials are missing
    """
    info = get_provider(connection.provider_id)
    if info is None:
        raise ProviderError(f"Unknown provider: {connection.provider_id}", connection.provider_id)

    if info.id in ("openai", "sambanova", "openrouter"):
        return OpenAICompatibleClient(
            provider_id=info.id,
            api_key=connection.api_key,
            base_url=connection.base_url or info.default_base_url,
            supports_images=info.supports_images,
        )
    if info.id == "anthropic":
        return AnthropicClient(api_key=connection.api_key, base_url=connection.base_url)
    if info.id == "groq":
        return GroqClient(api_key=connection.api_key)
    return OllamaClient(host=connection.base_url)


class ProviderManager:
    """
    Entry point for text generation across provider connections.

    Caches one client per connection id.
    """

    def __init__(
        self,
        catalog: ProfileCatalog,
        client_factory: ClientFactory | None = None,
    ):
        self.catalog = catalog
        self._client_factory = client_factory or create_client
        self._clients: dict[str, BaseProviderClient] = {}

    def validate_selection(self, profile_ids: list[str]) -> list[ResolvedProfile]:
        """
        Resolve selected profiles and check they can run.

        Args:
            profile_ids: Selected model profile ids, in selection order

        Returns:
            One ResolvedProfile per distinct selected id

        Raises:
            ConfigurationError: On the first unusable profile
        """
        if not profile_ids:
            raise ConfigurationError("Please select at least one model profile")

        resolved: list[ResolvedProfile] = []
        seen: set[str] = set()
        for profile_id in profile_ids:
            if profile_id in seen:
                continue
            seen.add(profile_id)

            profile = self.catalog.get_profile(profile_id)
            if profile is None:
                raise ConfigurationError("Unknown model profile", profile_id)
            if not profile.is_active:
                raise ConfigurationError("Model profile is inactive", profile_id)

            connection = self.catalog.connection_for(profile)
            if connection is None:
                raise ConfigurationError(
                    f"Provider connection '{profile.provider_connection_id}' not found",
                    profile_id,
                )
            if not connection.is_active:
                raise ConfigurationError(
                    f"Provider connection '{connection.id}' is inactive", profile_id
                )

            info = get_provider(connection.provider_id)
            if info is None:
                raise ConfigurationError(
                    f"Unknown provider '{connection.provider_id}'", profile_id
                )
            if info.requires_api_key and not (connection.api_key or "").strip():
                raise ConfigurationError(f"Please set your {info.name} API key", profile_id)

            resolved.append(ResolvedProfile(profile=profile, connection=connection))

        logger.info("selection_validated", profiles=[r.profile_id for r in resolved])
        return resolved

    def get_client(self, connection: ProviderConnection) -> BaseProviderClient:
        """Get (or create) the cached client for a connection."""
        client = self._clients.get(connection.id)
        if client is None:
            client = self._client_factory(connection)
            self._clients[connection.id] = client
        return client

    async def generate_text(
        self,
        item: WorkItem,
        profile: ModelProfile,
        connection: ProviderConnection,
    ) -> str:
        """
        Generate one suggestion for an item with a model profile.

        Raises:
            ProviderError: On any failure, including unexpected client errors
        """
        if not connection.is_active:
            raise ProviderConnectionError("Connection is inactive", connection.provider_id)

        info = get_provider(connection.provider_id)
        if info is not None and info.requires_api_key and not connection.api_key:
            raise MissingCredentialsError(connection.provider_id)

        prompt = request_prompt(item, profile)

        try:
            client = self.get_client(connection)
            response = await client.generate_text(
                content=item.content,
                prompt=prompt,
                model=profile.model_id,
                temperature=profile.temperature,
                max_tokens=profile.max_tokens,
                content_type=item.content_type,
            )
        except ProviderError:
            raise
        except Exception as e:
            logger.error(
                "unexpected_provider_error",
                provider=connection.provider_id,
                model=profile.model_id,
                error=str(e),
            )
            raise ProviderError(str(e), connection.provider_id, e) from e

        return response.content.strip()

    async def aclose(self) -> None:
        """Close every cached client."""
        for client in self._clients.values():
            await client.aclose()
        self._clients.clear()
