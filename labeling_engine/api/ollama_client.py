"""
Ollama client for local LLM inference.

Zero-cost processing using locally hosted models; no API key needed.
"""

import time

import httpx
import structlog
from ollama import AsyncClient, ResponseError

from ..config.settings import settings
from ..models import ContentType, GenerationResponse
from .base import (
    IMAGE_INSTRUCTION,
    BaseProviderClient,
    ModelNotFoundError,
    ProviderConnectionError,
    ProviderError,
)
from .images import fetch_as_data_url, is_data_url, split_data_url

logger = structlog.get_logger()


class OllamaClient(BaseProviderClient):
    """Ollama client using the non-chat ``generate`` endpoint."""

    name = "local"

    def __init__(self, host: str | None = None, timeout: float | None = None):
        """
        Initialize Ollama client.

        Args:
            host: Ollama server URL (defaults to settings.ollama_host)
            timeout: Request timeout in seconds
        """
        self.host = host or settings.ollama_host
        self.client = AsyncClient(
            host=self.host, timeout=timeout or settings.request_timeout_seconds
        )

    async def _image_payload(self, content: str) -> str:
        data_url = content if is_data_url(content) else await fetch_as_data_url(content, self.name)
        try:
            return split_data_url(data_url)[1]
        except ValueError as e:
            raise ProviderError("Unsupported image reference", self.name, e) from e

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

        options: dict[str, float | int] = {}
        if temperature is not None:
            options["temperature"] = temperature
        if max_tokens is not None:
            options["num_predict"] = max_tokens

        images = None
        if content_type == ContentType.IMAGE:
            images = [await self._image_payload(content)]
            full_prompt = f"{prompt}\n\n{IMAGE_INSTRUCTION}"
        else:
            full_prompt = f"{prompt}\n\nText to analyze:\n{content}"

        try:
            response = await self.client.generate(
                model=model,
                prompt=full_prompt,
                images=images,
                options=options or None,
            )
        except ResponseError as e:
            logger.error("ollama_generate_error", model=model, error=str(e))
            if e.status_code == 404 or "not found" in str(e).lower():
                raise ModelNotFoundError(self.name, model) from e
            raise ProviderError(str(e), self.name, e) from e
        except (httpx.TransportError, ConnectionError) as e:
            raise ProviderConnectionError(
                f"Cannot connect to Ollama at {self.host}", self.name, e
            ) from e

        latency_ms = (time.perf_counter() - start_time) * 1000
        usage = {
            "prompt_tokens": response.prompt_eval_count or 0,
            "completion_tokens": response.eval_count or 0,
            "total_tokens": (response.prompt_eval_count or 0) + (response.eval_count or 0),
        }

        logger.debug(
            "ollama_generate_success",
            model=model,
            latency_ms=round(latency_ms, 2),
            tokens=usage["total_tokens"],
        )

        return GenerationResponse(
            content=response.response or "",
            model=model,
            usage=usage,
            latency_ms=latency_ms,
        )
