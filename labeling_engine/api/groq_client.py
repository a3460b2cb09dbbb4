"""
Groq API client for high-speed LLM inference.
"""

import time
from typing import Any

import groq
import structlog
from groq import AsyncGroq

from ..config.settings import settings
from ..models import ContentType, GenerationResponse
from .base import (
    BaseProviderClient,
    MissingCredentialsError,
    ModelNotFoundError,
    ProviderConnectionError,
    ProviderError,
    RateLimitError,
)

logger = structlog.get_logger()


class GroqClient(BaseProviderClient):
    """Groq chat completions client. Text items only."""

    name = "groq"

    def __init__(self, api_key: str | None, timeout: float | None = None):
        if not api_key:
            raise MissingCredentialsError(self.name)

        self.client = AsyncGroq(
            api_key=api_key,
            timeout=timeout or settings.request_timeout_seconds,
            max_retries=0,
        )

    async def generate_text(
        self,
        content: str,
        prompt: str,
        model: str,
        temperature: float | None = None,
        max_tokens: int | None = None,
        content_type: ContentType = ContentType.TEXT,
    ) -> GenerationResponse:
        if content_type == ContentType.IMAGE:
            raise ProviderError("Image items are not supported", self.name)

        start_time = time.perf_counter()
        kwargs: dict[str, Any] = {
            "model": model,
            "messages": self._build_messages(prompt, content),
        }
        if temperature is not None:
            kwargs["temperature"] = temperature
        if max_tokens is not None:
            kwargs["max_tokens"] = max_tokens

        try:
            response = await self.client.chat.completions.create(**kwargs)
        except groq.RateLimitError as e:
            logger.warning("groq_rate_limit", model=model, error=str(e))
            raise RateLimitError(self.name, retry_after=60) from e
        except groq.NotFoundError as e:
            raise ModelNotFoundError(self.name, model) from e
        except groq.APIConnectionError as e:
            raise ProviderConnectionError(str(e), self.name, e) from e
        except groq.APIError as e:
            logger.error("groq_completion_error", model=model, error=str(e))
            raise ProviderError(str(e), self.name, e) from e

        latency_ms = (time.perf_counter() - start_time) * 1000
        usage = {
            "prompt_tokens": response.usage.prompt_tokens if response.usage else 0,
            "completion_tokens": response.usage.completion_tokens if response.usage else 0,
            "total_tokens": response.usage.total_tokens if response.usage else 0,
        }

        logger.debug(
            "groq_completion_success",
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
