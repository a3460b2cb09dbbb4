"""Tests for the provider manager and the httpx-based Anthropic client."""

import asyncio
import json

import httpx
import pytest

from labeling_engine.api.anthropic_client import AnthropicClient
from labeling_engine.api.base import BaseProviderClient
from labeling_engine.api.manager import ProviderManager, create_client
from labeling_engine.api.ollama_client import OllamaClient
from labeling_engine.api.openai_client import OpenAICompatibleClient
from labeling_engine.config.settings import settings
from labeling_engine.errors import (
    ConfigurationError,
    MissingCredentialsError,
    ModelNotFoundError,
    ProviderConnectionError,
    ProviderError,
    RateLimitError,
)
from labeling_engine.models import (
    ContentType,
    GenerationResponse,
    ProviderConnection,
    WorkItem,
)


class RecordingClient(BaseProviderClient):
    """Client double that records prompts or raises a configured error."""

    name = "fake"

    def __init__(self, error: Exception | None = None):
        self.error = error
        self.prompts: list[str] = []

    async def generate_text(self, content, prompt, model, temperature=None, max_tokens=None, content_type=ContentType.TEXT):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return GenerationResponse(content=f"  {model}:{content}  ", model=model)


class TestValidateSelection:
    """Configuration errors are raised before any work."""

    def test_resolves_profiles_in_order_without_duplicates(self, catalog):
        resolved = ProviderManager(catalog).validate_selection(["gpt", "llama", "gpt"])

        assert [r.profile_id for r in resolved] == ["gpt", "llama"]
        assert resolved[0].provider_id == "openai"

    @pytest.mark.parametrize(
        "mutate,match",
        [
            (lambda c: None, "Unknown model profile"),
            (lambda c: setattr(c.get_profile("llama"), "is_active", False), "inactive"),
            (lambda c: setattr(c.get_connection("local-conn"), "is_active", False), "inactive"),
            (lambda c: setattr(c.get_profile("llama"), "provider_connection_id", "gone"), "not found"),
            (lambda c: setattr(c.get_connection("local-conn"), "provider_id", "mystery"), "Unknown provider"),
        ],
    )
    def test_unusable_profiles(self, catalog, mutate, match):
        mutate(catalog)
        selection = ["llama"] if match != "Unknown model profile" else ["missing"]

        with pytest.raises(ConfigurationError, match=match):
            ProviderManager(catalog).validate_selection(selection)

    def test_empty_selection(self, catalog):
        with pytest.raises(ConfigurationError, match="at least one"):
            ProviderManager(catalog).validate_selection([])


class TestGenerateText:
    """The manager is the single GenerateText entry point."""

    def _manager(self, catalog, client):
        created = []

        def factory(connection):
            created.append(connection.id)
            return client

        return ProviderManager(catalog, client_factory=factory), created

    def test_uses_interpolated_prompt_and_caches_client(self, catalog, local_connection):
        client = RecordingClient()
        manager, created = self._manager(catalog, client)
        profile = catalog.get_profile("llama")
        item = WorkItem(id="a", content="hello", upload_prompt="Tag {{lang}}", metadata={"lang": "en"})

        async def scenario():
            first = await manager.generate_text(item, profile, local_connection)
            second = await manager.generate_text(item, profile, local_connection)
            return first, second

        first, second = asyncio.run(scenario())

        assert first == second == "llama3:hello"
        assert client.prompts == ["Tag en", "Tag en"]
        assert created == ["local-conn"]

    def test_default_system_prompt_when_no_prompt(self, catalog, local_connection):
        client = RecordingClient()
        manager, _ = self._manager(catalog, client)

        asyncio.run(manager.generate_text(WorkItem(id="a", content="x"), catalog.get_profile("llama"), local_connection))

        assert client.prompts == [settings.default_system_prompt]

    def test_unexpected_errors_become_provider_errors(self, catalog, local_connection):
        manager, _ = self._manager(catalog, RecordingClient(RuntimeError("socket exploded")))

        with pytest.raises(ProviderError, match="socket exploded") as exc_info:
            asyncio.run(manager.generate_text(WorkItem(id="a", content="x"), catalog.get_profile("llama"), local_connection))

        assert isinstance(exc_info.value.original_error, RuntimeError)

    def test_provider_errors_pass_through(self, catalog, local_connection):
        manager, _ = self._manager(catalog, RecordingClient(RateLimitError("local", retry_after=5)))

        with pytest.raises(RateLimitError):
            asyncio.run(manager.generate_text(WorkItem(id="a", content="x"), catalog.get_profile("llama"), local_connection))

    def test_inactive_connection_and_missing_key(self, catalog, local_connection, openai_connection):
        manager, _ = self._manager(catalog, RecordingClient())
        item = WorkItem(id="a", content="x")
        local_connection.is_active = False
        openai_connection.api_key = None

        with pytest.raises(ProviderConnectionError):
            asyncio.run(manager.generate_text(item, catalog.get_profile("llama"), local_connection))
        with pytest.raises(MissingCredentialsError):
            asyncio.run(manager.generate_text(item, catalog.get_profile("gpt"), openai_connection))


class TestCreateClient:
    """Connections map to client implementations."""

    def test_client_types(self):
        assert isinstance(
            create_client(ProviderConnection(id="o", provider_id="openrouter", api_key="k")),
            OpenAICompatibleClient,
        )
        assert isinstance(create_client(ProviderConnection(id="l", provider_id="local")), OllamaClient)
        assert isinstance(
            create_client(ProviderConnection(id="a", provider_id="anthropic", api_key="k")),
            AnthropicClient,
        )

    def test_sambanova_rejects_images(self):
        client = create_client(ProviderConnection(id="s", provider_id="sambanova", api_key="k"))

        with pytest.raises(ProviderError, match="Image"):
            asyncio.run(client.generate_text("data:image/png;base64,AA", "p", "m", content_type=ContentType.IMAGE))

    def test_unknown_provider(self):
        with pytest.raises(ProviderError):
            create_client(ProviderConnection(id="x", provider_id="mystery"))


class TestAnthropicClient:
    """Messages API over a mocked transport."""

    def _client(self, handler) -> AnthropicClient:
        return AnthropicClient(api_key="key", transport=httpx.MockTransport(handler))

    def test_text_completion(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["headers"] = request.headers
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={
                    "content": [{"type": "text", "text": "positive"}],
                    "usage": {"input_tokens": 10, "output_tokens": 2},
                },
            )

        response = asyncio.run(self._client(handler).generate_text("great!", "Sentiment?", "claude-3-haiku-20240307"))

        assert response.content == "positive"
        assert response.usage["total_tokens"] == 12
        assert seen["headers"]["x-api-key"] == "key"
        assert seen["body"]["system"] == "Sentiment?"
        assert seen["body"]["messages"] == [{"role": "user", "content": "great!"}]

    def test_image_data_url_sent_as_base64_source(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"content": [{"type": "text", "text": "a cat"}]})

        asyncio.run(
            self._client(handler).generate_text(
                "data:image/jpeg;base64,QUJD", "Describe", "m", content_type=ContentType.IMAGE
            )
        )

        image_block = seen["body"]["messages"][0]["content"][0]
        assert image_block["source"] == {"type": "base64", "media_type": "image/jpeg", "data": "QUJD"}

    @pytest.mark.parametrize(
        "status,error",
        [(429, RateLimitError), (404, ModelNotFoundError), (500, ProviderError)],
    )
    def test_http_errors(self, status, error):
        client = self._client(
            lambda request: httpx.Response(status, json={"error": {"message": "nope"}}, headers={"retry-after": "3"})
        )

        with pytest.raises(error):
            asyncio.run(client.generate_text("x", "p", "m"))

    def test_missing_key(self):
        with pytest.raises(MissingCredentialsError):
            AnthropicClient(api_key=None)
