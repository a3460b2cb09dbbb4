"""
Anthropic Messages API client.

Talks to ``/v1/messages`` directly over httpx. Image items are sent as base64
sources, so non-data URLs are downloaded first.
"""

import time
from typing import Any

import httpx
import structlog

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
from .images import fetch_as_data_url, is_data_url, split_data_url

logger = structlog.get_logger()

ANTHROPIC_VERSION = "2023-06-01"
DEFAULT_MAX_TOKENS = 1024


class AnthropicClient(BaseProviderClient):
    """Anthropic client over httpx."""

    name = "anthropic"

    def __init__(
        self,
        api_key: str | None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize Anthropic client.

        Args:
            api_key: Anthropic API key
            base_url: API root (defaults to https://api.anthropic.com)
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests use MockTransport)
        """
        if not api_key:
            raise MissingCredentialsError(self.name)

        self.http = httpx.AsyncClient(
            base_url=(base_url or "https://api.anthropic.com").rstrip("/"),
            headers={
                "x-api-key": api_key,
                "anthropic-version": ANTHROPIC_VERSION,
                "content-type": "application/json",
            },
            timeout=timeout or settings.request_timeout_seconds,
            transport=transport,
        )

    async def _user_content(self, content: str, content_type: ContentType) -> Any:
        if content_type != ContentType.IMAGE:
            return content

        data_url = content if is_data_url(content) else await fetch_as_data_url(content, self.name)
        try:
            media_type, data = split_data_url(data_url)
        except ValueError as e:
            raise ProviderError("Unsupported image reference", self.name, e) from e

        return [
            {
                "type": "image",
                "source": {"type": "base64", "media_type": media_type, "data": data},
            },
            {"type": "text", "text": IMAGE_INSTRUCTION},
        ]

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
        payload: dict[str, Any] = {
            "model": model,
            "max_tokens": max_tokens or DEFAULT_MAX_TOKENS,
            "system": prompt,
            "messages": [
                {"role": "user", "content": await self._user_content(content, content_type)}
            ],
        }
        if temperature is not None:
            payload["temperature"] = temperature

        try:
            response = await self.http.post("/v1/messages", json=payload)
        except httpx.TransportError as e:
            raise ProviderConnectionError(str(e), self.name, e) from e

        if response.status_code == 429:
            retry_after = response.headers.get("retry-after")
            logger.warning("anthropic_rate_limit", model=model)
            raise RateLimitError(self.name, retry_after=float(retry_after) if retry_after else None)
        if response.status_code == 404:
            raise ModelNotFoundError(self.name, model)
        if response.status_code >= 400:
            logger.error(
                "anthropic_completion_error",
                model=model,
                status_code=response.status_code,
            )
            raise ProviderError(self._error_message(response), self.name)

        try:
            data = response.json()
            text = "".join(
                block.get("text", "")
                for block in data.get("content", [])
                if block.get("type") == "text"
            )
        except (ValueError, AttributeError) as e:
            raise ProviderError("Malformed response", self.name, e) from e

        latency_ms = (time.perf_counter() - start_time) * 1000
        raw_usage = data.get("usage") or {}
        usage = {
            "prompt_tokens": raw_usage.get("input_tokens", 0),
            "completion_tokens": raw_usage.get("output_tokens", 0),
        }
        usage["total_tokens"] = usage["prompt_tokens"] + usage["completion_tokens"]

        logger.debug(
            "anthropic_completion_success",
            model=model,
            latency_ms=round(latency_ms, 2),
            tokens=usage["total_tokens"],
        )

        return GenerationResponse(content=text, model=model, usage=usage, latency_ms=latency_ms)

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            error = response.json().get("error") or {}
            message = error.get("message") if isinstance(error, dict) else str(error)
        except ValueError:
            message = None
        return message or f"Anthropic API error (HTTP {response.status_code})"

    async def aclose(self) -> None:
        await self.http.aclose()
