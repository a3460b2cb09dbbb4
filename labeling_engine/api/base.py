"""
Base provider client interface.

Defines the abstract text generation interface every model provider client
implements. The ProviderError hierarchy lives in ``labeling_engine.errors`` and
is re-exported here for client modules.
"""

from abc import ABC, abstractmethod

from ..errors import (
    MissingCredentialsError,
    ModelNotFoundError,
    ProviderConnectionError,
    ProviderError,
    RateLimitError,
)
from ..models import ContentType, GenerationResponse

IMAGE_INSTRUCTION = "Analyze this image."


class BaseProviderClient(ABC):
    """Abstract base class for model provider clients."""

    name: str = "base"

    @abstractmethod
    async def generate_text(
        self,
        content: str,
        prompt: str,
        model: str,
        temperature: float | None = None,
        max_tokens: int | None = None,
        content_type: ContentType = ContentType.TEXT,
    ) -> GenerationResponse:
        """
        Generate a suggestion for one piece of content.

        Args:
            content: Item text, or image URL / data URL for image items
            prompt: System prompt (already interpolated)
            model: Provider model identifier
            temperature: Sampling temperature (provider default if None)
            max_tokens: Maximum response tokens (provider default if None)
            content_type: Whether content is text or an image reference

        Returns:
            GenerationResponse with the generated text

        Raises:
            ProviderError: On any generation failure
        """
        pass

    async def aclose(self) -> None:
        """Release network resources held by the client."""
        return None

    def _build_messages(self, system_prompt: str, user_prompt: str) -> list[dict[str, str]]:
        """Helper to build standard message format."""
        return [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]


__all__ = [
    "BaseProviderClient",
    "IMAGE_INSTRUCTION",
    "MissingCredentialsError",
    "ModelNotFoundError",
    "ProviderConnectionError",
    "ProviderError",
    "RateLimitError",
]
