"""
Model provider clients.

Provides a unified text generation interface for OpenAI-compatible endpoints,
Anthropic, Groq and local Ollama models.
"""

from .anthropic_client import AnthropicClient
from .base import (
    BaseProviderClient,
    MissingCredentialsError,
    ModelNotFoundError,
    ProviderConnectionError,
    ProviderError,
    RateLimitError,
)
from .catalog import PROVIDERS, ProviderInfo, get_provider
from .groq_client import GroqClient
from .manager import ProviderManager, create_client
from .ollama_client import OllamaClient
from .openai_client import OpenAICompatibleClient

__all__ = [
    # Base
    "BaseProviderClient",
    "ProviderError",
    "RateLimitError",
    "ModelNotFoundError",
    "ProviderConnectionError",
    "MissingCredentialsError",
    # Catalog
    "PROVIDERS",
    "ProviderInfo",
    "get_provider",
    # Clients
    "AnthropicClient",
    "GroqClient",
    "OllamaClient",
    "OpenAICompatibleClient",
    # Manager
    "ProviderManager",
    "create_client",
]
