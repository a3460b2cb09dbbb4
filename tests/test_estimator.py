"""Tests for token and cost estimation."""

import asyncio

import pytest

from conftest import word_counter
from labeling_engine.config.settings import settings
from labeling_engine.estimation.estimator import estimate_cost, estimate_tokens, price_estimate
from labeling_engine.estimation.pricing import PricingSession
from labeling_engine.estimation.tokenizers import IMAGE_TOKENS, TokenCounter, tokenizer_family
from labeling_engine.models import (
    ContentType,
    ModelProfile,
    PriceSource,
    ProcessingScope,
    ResolvedProfile,
    TokenizerFamily,
    WorkItem,
    WorkItemStatus,
)


@pytest.fixture(autouse=True)
def no_system_prompt(monkeypatch):
    """Expected counts below cover item prompts and content only."""
    monkeypatch.setattr(settings, "default_system_prompt", "")


def _resolved(connection, profile_id="m1", model_id="llama3", **fields) -> ResolvedProfile:
    profile = ModelProfile(
        id=profile_id,
        provider_connection_id=connection.id,
        model_id=model_id,
        **fields,
    )
    return ResolvedProfile(profile=profile, connection=connection)


class TestTokenizerFamily:
    """o200k for matching OpenAI models, cl100k for everything else."""

    @pytest.mark.parametrize(
        "provider,model,expected",
        [
            ("openai", "gpt-4o", TokenizerFamily.O200K),
            ("openai", "gpt-4o-mini", TokenizerFamily.O200K),
            ("openai", "o3-mini", TokenizerFamily.O200K),
            ("openai", "gpt-3.5-turbo", TokenizerFamily.CL100K),
            ("openrouter", "openai/gpt-4o", TokenizerFamily.O200K),
            ("openrouter", "meta-llama/llama-3-8b", TokenizerFamily.CL100K),
            ("anthropic", "claude-3-haiku-20240307", TokenizerFamily.CL100K),
            ("local", "gpt-4o", TokenizerFamily.CL100K),
        ],
    )
    def test_family(self, provider, model, expected):
        assert tokenizer_family(provider, model) == expected

    def test_counter_uses_the_family_encoder(self):
        """Injected encoders are chosen by family."""
        counter = TokenCounter({TokenizerFamily.O200K: lambda t: 1, TokenizerFamily.CL100K: lambda t: 2})

        assert counter.count("anything", TokenizerFamily.O200K) == 1
        assert counter.count("anything", TokenizerFamily.CL100K) == 2
        assert counter.count("", TokenizerFamily.CL100K) == 0


class TestTokenEstimate:
    """Token counting over the items a run would touch."""

    def test_cost_scenario(self, local_connection):
        """100 items x 50 tokens at $1/M input is 5000 tokens and $0.005."""
        items = [WorkItem(id=f"i{i}", content=" ".join(["w"] * 50)) for i in range(100)]
        profile = _resolved(local_connection, input_price_per_million=1.0)

        estimate = asyncio.run(estimate_cost(items, [profile], counter=word_counter()))

        assert estimate.tokens.input_tokens == 5000
        assert estimate.tokens.items == 100
        assert estimate.tokens.models == 1
        assert estimate.total_cost == pytest.approx(0.005)
        assert estimate.unresolved_profile_ids == []
        assert estimate.breakdown[0].price_source == PriceSource.MANUAL

    def test_prompt_is_interpolated_and_counted(self, local_connection):
        """Upload prompt overrides the default prompt and fills placeholders."""
        item = WorkItem(
            id="a",
            content="one two",
            upload_prompt="label {{topic}} now",
            metadata={"topic": "sports news"},
        )
        profile = _resolved(local_connection, default_prompt="ignored default prompt here")

        tokens = estimate_tokens([item], [profile], counter=word_counter())

        # "label sports news now" + "one two"
        assert tokens.per_model_tokens == {"m1": 6}

    def test_default_prompt_used_without_upload_prompt(self, local_connection):
        item = WorkItem(id="a", content="one two")
        profile = _resolved(local_connection, default_prompt="classify this")

        tokens = estimate_tokens([item], [profile], counter=word_counter())

        assert tokens.input_tokens == 4

    def test_system_prompt_counted_when_no_prompt_is_set(self, local_connection, monkeypatch):
        """Pairs without any prompt are sent the default system prompt."""
        monkeypatch.setattr(settings, "default_system_prompt", "you label data")
        items = [
            WorkItem(id="a", content="one two"),
            WorkItem(id="b", content="one two", upload_prompt="tag it"),
        ]

        tokens = estimate_tokens(items, [_resolved(local_connection)], counter=word_counter())

        assert tokens.input_tokens == 5 + 4

    def test_skips_existing_suggestions_unless_forced(self, local_connection):
        """Pairs the run would skip are not counted."""
        items = [
            WorkItem(id="a", content="one", ai_suggestions={"m1": "done"}),
            WorkItem(id="b", content="one"),
            WorkItem(id="c", content="one", status=WorkItemStatus.ACCEPTED),
            WorkItem(id="d", content="one", status=WorkItemStatus.EDITED),
        ]
        profiles = [_resolved(local_connection, "m1"), _resolved(local_connection, "m2")]

        normal = estimate_tokens(items, profiles, counter=word_counter())
        forced = estimate_tokens(items, profiles, force=True, counter=word_counter())

        assert normal.per_model_tokens == {"m1": 1, "m2": 2}
        assert normal.items == 2
        assert forced.per_model_tokens == {"m1": 2, "m2": 2}
        assert forced.items == 2

    def test_scope_limits_candidates(self, local_connection):
        items = [WorkItem(id="a", content="one"), WorkItem(id="b", content="one two")]

        tokens = estimate_tokens(
            items,
            [_resolved(local_connection)],
            scope=ProcessingScope.subset(["b"]),
            counter=word_counter(),
        )

        assert tokens.input_tokens == 2
        assert tokens.items == 1

    def test_image_items_count_prompt_plus_flat_cost(self, local_connection):
        item = WorkItem(
            id="img",
            content="data:image/png;base64,AAAA",
            content_type=ContentType.IMAGE,
            upload_prompt="describe",
        )

        tokens = estimate_tokens([item], [_resolved(local_connection)], counter=word_counter())

        assert tokens.input_tokens == 1 + IMAGE_TOKENS


class TestCostEstimate:
    """Combining tokens with prices."""

    def test_unresolved_models_contribute_tokens_but_no_cost(self, local_connection, openai_connection):
        items = [WorkItem(id="a", content="one two three four")]
        priced = _resolved(openai_connection, "gpt", "gpt-4o-mini")
        unpriced = _resolved(local_connection, "llama")

        estimate = asyncio.run(
            estimate_cost(items, [priced, unpriced], pricing=PricingSession(), counter=word_counter())
        )

        assert estimate.tokens.input_tokens == 8
        assert estimate.unresolved_profile_ids == ["llama"]
        assert estimate.total_cost == pytest.approx(4 / 1_000_000 * 0.15)
        by_id = {entry.profile_id: entry for entry in estimate.breakdown}
        assert by_id["gpt"].price_source == PriceSource.OFFICIAL
        assert by_id["llama"].cost is None
        assert by_id["llama"].tokens == 4
        assert "cost unknown for 1 of 2 models" in estimate.summary

    def test_price_estimate_is_pure(self, local_connection):
        profile = _resolved(local_connection)
        tokens = estimate_tokens([WorkItem(id="a", content="x " * 10)], [profile], counter=word_counter())

        first = price_estimate(tokens, [profile], {"m1": (2.0, PriceSource.MANUAL)})
        second = price_estimate(tokens, [profile], {"m1": (2.0, PriceSource.MANUAL)})

        assert first == second
        assert first.total_cost == pytest.approx(10 / 1_000_000 * 2.0)
