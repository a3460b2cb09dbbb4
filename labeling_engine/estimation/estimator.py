"""
Token and cost estimator.

Computes an upfront estimate for a prospective run: tokens per selected model
over the items that run would actually touch, and the dollar cost where a price
can be resolved. Token counting is pure; only price resolution may await a
live lookup.
"""

from typing import Iterable

import structlog

from ..models import (
    ContentType,
    CostEstimate,
    ModelCostBreakdown,
    ModelProfile,
    PriceSource,
    ProcessingScope,
    ResolvedProfile,
    TokenEstimate,
    TokenizerFamily,
    WorkItem,
)
from ..processing.selection import needs_profile
from ..prompts import request_prompt
from .pricing import PricingSession
from .tokenizers import IMAGE_TOKENS, TokenCounter, tokenizer_family

logger = structlog.get_logger()

TOKENS_PER_PRICE_UNIT = 1_000_000


def item_tokens(
    item: WorkItem,
    profile: ModelProfile,
    family: TokenizerFamily,
    counter: TokenCounter,
) -> int:
    """Input tokens for one (item, profile) pair."""
    prompt = request_prompt(item, profile)
    if item.content_type == ContentType.IMAGE:
        return counter.count(prompt, family) + IMAGE_TOKENS

    text = f"{prompt}\n{item.content}" if prompt else item.content
    return counter.count(text, family)


def estimate_tokens(
    items: Iterable[WorkItem],
    profiles: list[ResolvedProfile],
    scope: ProcessingScope | None = None,
    force: bool = False,
    counter: TokenCounter | None = None,
) -> TokenEstimate:
    """
    Count input tokens per selected profile.

    Pairs the run would skip (frozen items, or existing suggestions without
    ``force``) are not counted.
    """
    scope = scope or ProcessingScope.all()
    counter = counter or TokenCounter()
    candidates = [item for item in items if scope.includes(item.id)]

    per_model: dict[str, int] = {}
    counted: set[str] = set()
    for resolved in profiles:
        family = tokenizer_family(resolved.provider_id, resolved.profile.model_id)
        tokens = 0
        for item in candidates:
            if not needs_profile(item, resolved.profile_id, force):
                continue
            counted.add(item.id)
            tokens += item_tokens(item, resolved.profile, family, counter)
        per_model[resolved.profile_id] = tokens

    return TokenEstimate(
        input_tokens=sum(per_model.values()),
        items=len(counted),
        models=len(profiles),
        per_model_tokens=per_model,
    )


def price_estimate(
    tokens: TokenEstimate,
    profiles: list[ResolvedProfile],
    prices: dict[str, tuple[float | None, PriceSource]],
) -> CostEstimate:
    """Combine token counts with resolved prices."""
    breakdown: list[ModelCostBreakdown] = []
    unresolved: list[str] = []
    total_cost = 0.0

    for resolved in profiles:
        model_tokens = tokens.per_model_tokens.get(resolved.profile_id, 0)
        price, source = prices.get(resolved.profile_id, (None, PriceSource.UNAVAILABLE))

        cost = None
        if price is None:
            unresolved.append(resolved.profile_id)
        else:
            cost = model_tokens / TOKENS_PER_PRICE_UNIT * price
            total_cost += cost

        breakdown.append(
            ModelCostBreakdown(
                profile_id=resolved.profile_id,
                model_id=resolved.profile.model_id,
                tokens=model_tokens,
                price_per_million=price,
                cost=cost,
                price_source=source,
            )
        )

    return CostEstimate(
        tokens=tokens,
        total_cost=total_cost,
        unresolved_profile_ids=unresolved,
        breakdown=breakdown,
    )


async def estimate_cost(
    items: Iterable[WorkItem],
    profiles: list[ResolvedProfile],
    scope: ProcessingScope | None = None,
    force: bool = False,
    pricing: PricingSession | None = None,
    counter: TokenCounter | None = None,
) -> CostEstimate:
    """
    Estimate tokens and cost for a prospective run.

    Args:
        items: Work items of the project
        profiles: Selected profiles with their connections
        scope: Items considered (all by default)
        force: Whether the run would reprocess existing suggestions
        pricing: Pricing session (reuse it across previews of one dialog)
        counter: Token counter (tiktoken-backed by default)

    Returns:
        CostEstimate; models without a price are listed as unresolved
    """
    tokens = estimate_tokens(items, profiles, scope, force, counter)
    pricing = pricing or PricingSession()

    prices = {}
    for resolved in profiles:
        prices[resolved.profile_id] = await pricing.resolve(resolved)

    estimate = price_estimate(tokens, profiles, prices)
    logger.info(
        "estimate_computed",
        items=tokens.items,
        models=tokens.models,
        input_tokens=tokens.input_tokens,
        total_cost=round(estimate.total_cost, 6),
        unresolved=len(estimate.unresolved_profile_ids),
    )
    return estimate
