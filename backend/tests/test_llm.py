"""Tests for the LLM provider registry and provider adapters."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from wordsplainer.models.llm_models import LLMConfig, LLMProviderType
from wordsplainer.services.llm.anthropic_provider import AnthropicProvider
from wordsplainer.services.llm.openai_compat import OpenAICompatProvider, OpenRouterProvider
from wordsplainer.services.llm.registry import (
    DEFAULT_BASE_URLS,
    DEFAULT_MODELS,
    REQUIRES_API_KEY,
    get_provider,
    provider_from_config,
)


@pytest.fixture
def anyio_backend():
    return "asyncio"


# --- Registry unit tests ---


def test_all_providers_have_metadata():
    """Every provider type should have entries in all metadata dicts."""
    for p in LLMProviderType:
        assert p in DEFAULT_BASE_URLS, f"Missing default URL for {p}"
        assert p in DEFAULT_MODELS, f"Missing default model for {p}"
        assert p in REQUIRES_API_KEY, f"Missing requires_api_key for {p}"


def test_get_provider_openrouter():
    provider = get_provider(LLMProviderType.OPENROUTER, api_key="sk-or-test")
    assert isinstance(provider, OpenRouterProvider)
    assert provider.base_url == "https://openrouter.ai/api/v1"
    assert provider.model == "google/gemma-3-12b-it:free"
    assert provider.default_headers["X-Title"] == "Wordsplainer App"


def test_get_provider_openai():
    provider = get_provider(LLMProviderType.OPENAI, api_key="sk-test")
    assert type(provider) is OpenAICompatProvider
    assert provider.base_url == "https://api.openai.com/v1"


def test_get_provider_anthropic():
    provider = get_provider(LLMProviderType.ANTHROPIC, api_key="sk-ant-test")
    assert isinstance(provider, AnthropicProvider)
    assert provider.base_url == "https://api.anthropic.com"


def test_get_provider_ollama():
    provider = get_provider(LLMProviderType.OLLAMA)
    assert isinstance(provider, OpenAICompatProvider)
    assert provider.base_url == "http://localhost:11434/v1"
    assert provider.model is None


def test_get_provider_custom_url():
    provider = get_provider(LLMProviderType.CUSTOM, base_url="http://my-server:9999/v1")
    assert provider.base_url == "http://my-server:9999/v1"


def test_get_provider_respects_model():
    provider = get_provider(LLMProviderType.OPENAI, api_key="sk-test", model="gpt-4o")
    assert provider.model == "gpt-4o"


def test_provider_from_config():
    config = LLMConfig(provider=LLMProviderType.OPENAI, api_key="sk-test", model="gpt-4o-mini")
    provider = provider_from_config(config)
    assert provider.api_key == "sk-test"
    assert provider.model == "gpt-4o-mini"


def test_local_providers_no_key_required():
    for p in [LLMProviderType.OLLAMA, LLMProviderType.CUSTOM]:
        assert REQUIRES_API_KEY[p] is False


# --- SSRF validation of user-supplied base URLs ---


@pytest.mark.parametrize(
    "url",
    [
        "https://169.254.169.254/latest/meta-data",
        "https://127.0.0.1/v1",
        "https://192.168.1.1/v1",
        "https://metadata.google.internal/v1",
        "https://evil.example.com/v1",
    ],
)
def test_cloud_provider_rejects_unsafe_base_url(url):
    with pytest.raises(ValueError):
        get_provider(LLMProviderType.OPENROUTER, api_key="k", base_url=url)


def test_cloud_provider_accepts_subdomain():
    provider = get_provider(LLMProviderType.OPENAI, api_key="k", base_url="https://eu.api.openai.com/v1")
    assert provider.base_url == "https://eu.api.openai.com/v1"


def test_local_provider_may_target_localhost():
    provider = get_provider(LLMProviderType.OLLAMA, base_url="http://127.0.0.1:11434/v1")
    assert provider.base_url == "http://127.0.0.1:11434/v1"


# --- Adapters ---


@pytest.mark.anyio
async def test_openai_compat_complete():
    provider = OpenAICompatProvider(api_key="k", base_url="http://localhost:8080/v1", model="m")
    client = MagicMock()
    client.chat.completions.create = AsyncMock(
        return_value=SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content='{"ok": 1}'))])
    )
    messages = [{"role": "user", "content": "hi"}]
    with patch.object(provider, "_client", return_value=client):
        text = await provider.complete(messages, temperature=0.7)

    assert text == '{"ok": 1}'
    client.chat.completions.create.assert_awaited_once_with(model="m", messages=messages, temperature=0.7)


@pytest.mark.anyio
async def test_openai_compat_empty_choices():
    provider = OpenAICompatProvider(api_key="k", base_url="http://localhost:8080/v1", model="m")
    client = MagicMock()
    client.chat.completions.create = AsyncMock(return_value=SimpleNamespace(choices=[]))
    with patch.object(provider, "_client", return_value=client):
        with pytest.raises(ValueError, match="No response"):
            await provider.complete([{"role": "user", "content": "hi"}])


@pytest.mark.anyio
async def test_complete_without_model_fails():
    provider = OpenAICompatProvider(api_key=None, base_url="http://localhost:11434/v1")
    with pytest.raises(ValueError, match="No model selected"):
        await provider.complete([{"role": "user", "content": "hi"}])


@pytest.mark.anyio
async def test_anthropic_sends_system_separately():
    provider = AnthropicProvider(api_key="sk-ant", base_url="https://api.anthropic.com", model="claude")
    client = MagicMock()
    client.messages.create = AsyncMock(return_value=SimpleNamespace(content=[SimpleNamespace(text="{}")]))
    messages = [
        {"role": "system", "content": "Respond with JSON."},
        {"role": "user", "content": "hi"},
    ]
    with patch("wordsplainer.services.llm.anthropic_provider.anthropic.AsyncAnthropic", return_value=client):
        text = await provider.complete(messages, temperature=0.7)

    assert text == "{}"
    kwargs = client.messages.create.call_args.kwargs
    assert kwargs["system"] == "Respond with JSON."
    assert kwargs["messages"] == [{"role": "user", "content": "hi"}]
    assert kwargs["max_tokens"] == 1000
    assert kwargs["temperature"] == 0.7
