"""
Price resolution for cost estimates.

Resolution order per model profile, first match wins:

1. Manual override on the profile
2. Built-in official price table
3. Live pricing from the provider's public model listing (cached per session)
4. Unavailable: the model counts tokens but no cost
"""

from typing import Any

import httpx
import structlog
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..api.catalog import get_provider
from ..config.settings import settings
from ..errors import EstimationUnavailable
from ..models import ModelPricing, PriceSource, ResolvedProfile

logger = structlog.get_logger()

# Dollars per million tokens
OFFICIAL_PRICES: dict[tuple[str, str], ModelPricing] = {
    ("openai", "gpt-4o"): ModelPricing(input=2.50, output=10.00),
    ("openai", "gpt-4o-mini"): ModelPricing(input=0.15, output=0.60),
    ("openai", "gpt-3.5-turbo"): ModelPricing(input=0.50, output=1.50),
    ("anthropic", "claude-3-5-sonnet-20240620"): ModelPricing(input=3.00, output=15.00),
    ("anthropic", "claude-3-opus-20240229"): ModelPricing(input=15.00, output=75.00),
    ("anthropic", "claude-3-haiku-20240307"): ModelPricing(input=0.25, output=1.25),
}


def _per_million(value: Any) -> float | None:
    """Convert a per-token price (number or numeric string) to per million."""
    if value is None or value == "":
        return None
    try:
        price = float(value)
    except (TypeError, ValueError):
        return None
    if price < 0:
        return None
    return price * 1_000_000


class OpenRouterPricingClient:
    """Reads prices from an OpenRouter-style ``/models`` listing."""

    def __init__(
        self,
        url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = url or settings.openrouter_models_url
        self.timeout = timeout or settings.pricing_timeout_seconds
        self.transport = transport
        self._models: dict[str, dict[str, Any]] | None = None

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, max=4),
        reraise=True,
    )
    async def _fetch_models(self) -> list[dict[str, Any]]:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.get(self.url)
            response.raise_for_status()
            payload = response.json()
        data = payload.get("data") if isinstance(payload, dict) else None
        return data if isinstance(data, list) else []

    async def _listing(self, provider_id: str, model_id: str) -> dict[str, dict[str, Any]]:
        if self._models is None:
            try:
                records = await self._fetch_models()
            except (httpx.HTTPError, ValueError) as e:
                raise EstimationUnavailable(provider_id, model_id, f"pricing fetch failed: {e}") from e
            self._models = {
                record["id"]: record
                for record in records
                if isinstance(record, dict) and record.get("id")
            }
            logger.debug("live_pricing_loaded", models=len(self._models))
        return self._models

    async def resolve_pricing(self, provider_id: str, model_id: str) -> ModelPricing:
        """
        Look up a model's live price.

        Raises:
            EstimationUnavailable: If the listing is unreachable or has no price
        """
        record = (await self._listing(provider_id, model_id)).get(model_id)
        if record is None:
            raise EstimationUnavailable(provider_id, model_id, "model not listed")

        pricing = record.get("pricing") or {}
        result = ModelPricing(
            input=_per_million(pricing.get("prompt")),
            output=_per_million(pricing.get("completion")),
        )
        if result.input is None:
            raise EstimationUnavailable(provider_id, model_id, "no input price")
        return result


class PricingSession:
    """Resolves prices for one estimate dialog; live lookups are cached."""

    def __init__(self, live_client: OpenRouterPricingClient | None = None):
        self.live_client = live_client
        self._live_cache: dict[tuple[str, str], ModelPricing | None] = {}

    async def resolve(self, resolved: ResolvedProfile) -> tuple[float | None, PriceSource]:
        """Get (input price per million, source) for a profile."""
        profile = resolved.profile
        provider_id = resolved.provider_id

        if profile.input_price_per_million is not None:
            return profile.input_price_per_million, PriceSource.MANUAL

        official = OFFICIAL_PRICES.get((provider_id, profile.model_id))
        if official is not None and official.input is not None:
            return official.input, PriceSource.OFFICIAL

        info = get_provider(provider_id)
        if self.live_client is not None and info is not None and info.live_pricing:
            live = await self._live(provider_id, profile.model_id)
            if live is not None and live.input is not None:
                return live.input, PriceSource.LIVE

        return None, PriceSource.UNAVAILABLE

    async def _live(self, provider_id: str, model_id: str) -> ModelPricing | None:
        key = (provider_id, model_id)
        if key not in self._live_cache:
            try:
                self._live_cache[key] = await self.live_client.resolve_pricing(provider_id, model_id)
            except EstimationUnavailable as e:
                logger.warning(
                    "pricing_unavailable",
                    provider=provider_id,
                    model=model_id,
                    reason=e.reason,
                )
                self._live_cache[key] = None
        return self._live_cache[key]
