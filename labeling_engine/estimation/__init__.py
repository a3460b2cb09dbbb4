"""Token counting, price resolution and cost estimation."""

from .estimator import estimate_cost, estimate_tokens, item_tokens, price_estimate
from .pricing import OFFICIAL_PRICES, OpenRouterPricingClient, PricingSession
from .tokenizers import IMAGE_TOKENS, TokenCounter, tokenizer_family

__all__ = [
    "IMAGE_TOKENS",
    "OFFICIAL_PRICES",
    "OpenRouterPricingClient",
    "PricingSession",
    "TokenCounter",
    "estimate_cost",
    "estimate_tokens",
    "item_tokens",
    "price_estimate",
    "tokenizer_family",
]
