"""
Built-in provider catalog.

Describes the providers a connection may point at: whether they need an API
key, their default endpoint and whether they publish live pricing.
"""

from pydantic import BaseModel


class ProviderInfo(BaseModel):
    """Static description of one model provider."""

    id: str
    name: str
    requires_api_key: bool = True
    default_base_url: str | None = None
    live_pricing: bool = False
    supports_images: bool = True


PROVIDERS: dict[str, ProviderInfo] = {
    "openai": ProviderInfo(
        id="openai",
        name="OpenAI",
        default_base_url="https://api.openai.com/v1",
    ),
    "anthropic": ProviderInfo(
        id="anthropic",
        name="Anthropic",
        default_base_url="https://api.anthropic.com",
    ),
    "sambanova": ProviderInfo(
        id="sambanova",
        name="SambaNova",
        default_base_url="https://api.sambanova.ai/v1",
        supports_images=False,
    ),
    "openrouter": ProviderInfo(
        id="openrouter",
        name="OpenRouter",
        default_base_url="https://openrouter.ai/api/v1",
        live_pricing=True,
    ),
    "groq": ProviderInfo(
        id="groq",
        name="Groq",
        supports_images=False,
    ),
    "local": ProviderInfo(
        id="local",
        name="Local (Ollama)",
        requires_api_key=False,
    ),
}


def get_provider(provider_id: str) -> ProviderInfo | None:
    """Look up a provider by id."""
    return PROVIDERS.get(provider_id)
