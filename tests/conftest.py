"""Shared fixtures for the labeling engine tests."""

import asyncio
from typing import Any

import pytest

from labeling_engine.api.manager import ProviderManager
from labeling_engine.config.profiles import ProfileCatalog
from labeling_engine.errors import ProviderError
from labeling_engine.models import (
    ModelProfile,
    ProviderConnection,
    ResolvedProfile,
    TokenizerFamily,
    WorkItem,
)
from labeling_engine.estimation.tokenizers import TokenCounter


class FakeGenerator(ProviderManager):
    """ProviderManager with real selection validation and a scripted generate_text."""

    def __init__(
        self,
        catalog: ProfileCatalog,
        fail_on: set[tuple[str, str]] | None = None,
        delay: float = 0.0,
    ):
        super().__init__(catalog)
        self.fail_on = fail_on or set()
        self.delay = delay
        self.calls: list[tuple[str, str]] = []
        self.running = 0
        self.peak_running = 0

    async def generate_text(self, item, profile, connection) -> str:
        self.calls.append((item.id, profile.id))
        self.running += 1
        self.peak_running = max(self.peak_running, self.running)
        try:
            await asyncio.sleep(self.delay)
            if (item.id, profile.id) in self.fail_on:
                raise ProviderError(f"failed on {item.id}", connection.provider_id)
            return f"{profile.id}:{item.id}"
        finally:
            self.running -= 1


class RecordingRepository:
    """Persistence collaborator that records field updates."""

    def __init__(self):
        self.updates: list[tuple[str, dict[str, Any]]] = []

    async def update_fields(self, item_id: str, fields: dict[str, Any]) -> None:
        self.updates.append((item_id, fields))


def make_items(count: int, prefix: str = "item", **fields: Any) -> list[WorkItem]:
    return [WorkItem(id=f"{prefix}-{i}", content=f"text {i}", **fields) for i in range(count)]


def word_counter() -> TokenCounter:
    """Token counter that counts whitespace-separated words for every family."""
    count_words = lambda text: len(text.split())
    return TokenCounter({TokenizerFamily.O200K: count_words, TokenizerFamily.CL100K: count_words})


@pytest.fixture
def local_connection() -> ProviderConnection:
    return ProviderConnection(id="local-conn", provider_id="local", name="Ollama")


@pytest.fixture
def openai_connection() -> ProviderConnection:
    return ProviderConnection(id="openai-conn", provider_id="openai", api_key="sk-test")


@pytest.fixture
def catalog(local_connection, openai_connection) -> ProfileCatalog:
    profiles = [
        ModelProfile(id="llama", provider_connection_id="local-conn", model_id="llama3"),
        ModelProfile(id="mistral", provider_connection_id="local-conn", model_id="mistral"),
        ModelProfile(id="gpt", provider_connection_id="openai-conn", model_id="gpt-4o-mini"),
    ]
    return ProfileCatalog([local_connection, openai_connection], profiles)


@pytest.fixture
def generator(catalog) -> FakeGenerator:
    return FakeGenerator(catalog)


@pytest.fixture
def resolved_local(catalog) -> ResolvedProfile:
    profile = catalog.get_profile("llama")
    return ResolvedProfile(profile=profile, connection=catalog.connection_for(profile))


@pytest.fixture
def repository() -> RecordingRepository:
    return RecordingRepository()
