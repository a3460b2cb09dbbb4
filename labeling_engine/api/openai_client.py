"""
OpenAI-compatible chat completions client.

Serves OpenAI itself and the providers exposing the same API
(SambaNova, OpenRouter) through the official ``openai`` SDK.
"""

import time
from typing import Any

import openai
import structlog
from openai import AsyncOpenAI

from ..config.settings import settings
from ..models import ContentType, GenerationResponse
from .base import (
    IMAGE_INSTRUCTION,
    BaseProviderClient,
    MissingCredentialsError,
    ModelNotFoundError,
    ProviderConnectionError,
    ProviderError,
    RateLimitError,
)
from .images import resolve_image_content

logger = structlog.get_logger()


class OpenAICompatibleClient(BaseProviderClient):
    """
    Chat completions client for OpenAI-style endpoints.

    One instance serves one provider connection; ``name`` is the provider id
    so errors and logs name the right provider.
    """

    def __init__(
        self,
        provider_id: str,
        api_key: str | None,
        base_url: str | None = None,
        supports_images: bool = True,
        timeout: float | None = None,
    ):
        """
        Initialize the client.

        Args:
            provider_id: Catalog id (openai, sambanova, openrouter)
            api_key: Connection API key
            base_url: Endpoint override (SDK default if None)
            supports_images: Whether image items may be sent
            timeout: Request timeout in seconds
        """
        if not api_key:
            raise MissingCredentialsError(provider_id)

        self.name = provider_id
        self.supports_images = supports_images
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout or settings.request_timeout_seconds,
            max_retries=0,
        )

    async def _build_user_message(self, content: str, content_type: ContentType) -> dict[str, Any]:
        if content_type != ContentType.IMAGE:
            return {"role": "user", "content": content}

        if not self.supports_images:
            raise ProviderError("Image items are not supported", self.name)

        image_url = await resolve_image_content(content, self.name)
        return {
            "role": "user",
            "content": [
                {"type": "text", "text": IMAGE_INSTRUCTION},
                {"type": "image_url", "image_url": {"url": image_url}},
            ],
        }

    async def generate_text(
        self,
        content: str,
        prompt: str,
        model: str,
        temperature: float | None = None,
        max_tokens: int | None = None,
        content_type: ContentType = ContentType.TEXT,
    ) -> GenerationResponse:
        start_time = time.perf_counter()
        messages = [
            {"role": "system", "content": prompt},
            await self._build_user_message(content, content_type),
        ]

        kwargs: dict[str, Any] = {"model": model, "messages": messages}
        if temperature is not None:
            kwargs["temperature"] = temperature
        if max_tokens is not None:
            kwargs["max_tokens"] = max_tokens

        try:
            response = await self.client.chat.completions.create(**kwargs)
        except openai.RateLimitError as e:
            logger.warning("openai_rate_limit", provider=self.name, model=model, error=str(e))
            retry_after = e.response.headers.get("retry-after") if e.response else None
            raise RateLimitError(
                self.name, retry_after=float(retry_after) if retry_after else None
            ) from e
        except openai.NotFoundError as e:
            raise ModelNotFoundError(self.name, model) from e
        except openai.APIConnectionError as e:
            raise ProviderConnectionError(str(e), self.name, e) from e
        except openai.APIError as e:
            logger.error("openai_completion_error", provider=self.name, model=model, error=str(e))
            raise ProviderError(str(e), self.name, e) from e

        latency_ms = (time.perf_counter() - start_time) * 1000
        if not response.choices:
            raise ProviderError("Malformed response: no choices", self.name)

        usage = {
            "prompt_tokens": response.usage.prompt_tokens if response.usage else 0,
            "completion_tokens": response.usage.completion_tokens if response.usage else 0,
            "total_tokens": response.usage.total_tokens if response.usage else 0,
        }

        logger.debug(
            "openai_completion_success",
            provider=self.name,
            model=model,
            latency_ms=round(latency_ms, 2),
            tokens=usage["total_tokens"],
        )

        return GenerationResponse(
            content=response.choices[0].message.content or "",
            model=model,
            usage=usage,
            latency_ms=latency_ms,
        )

    async def aclose(self) -> None:
        await self.client.close()
