"""Provider factory and metadata registry."""

import ipaddress
from urllib.parse import urlparse

from wordsplainer.models.llm_models import LLMConfig, LLMProviderType
from wordsplainer.services.llm.anthropic_provider import AnthropicProvider
from wordsplainer.services.llm.base import BaseLLMProvider
from wordsplainer.services.llm.openai_compat import OpenAICompatProvider, OpenRouterProvider

# Default base URLs per provider
DEFAULT_BASE_URLS: dict[LLMProviderType, str] = {
    LLMProviderType.OPENROUTER: "https://openrouter.ai/api/v1",
    LLMProviderType.OPENAI: "https://api.openai.com/v1",
    LLMProviderType.ANTHROPIC: "https://api.anthropic.com",
    LLMProviderType.OLLAMA: "http://localhost:11434/v1",
    LLMProviderType.CUSTOM: "http://localhost:8080/v1",
}

# Default model per provider (used when none selected)
DEFAULT_MODELS: dict[LLMProviderType, str] = {
    LLMProviderType.OPENROUTER: "google/gemma-3-12b-it:free",
    LLMProviderType.OPENAI: "gpt-4o-mini",
    LLMProviderType.ANTHROPIC: "claude-haiku-4-5-20251001",
    LLMProviderType.OLLAMA: "",
    LLMProviderType.CUSTOM: "",
}

# Whether the provider requires an API key
REQUIRES_API_KEY: dict[LLMProviderType, bool] = {
    LLMProviderType.OPENROUTER: True,
    LLMProviderType.OPENAI: True,
    LLMProviderType.ANTHROPIC: True,
    LLMProviderType.OLLAMA: False,
    LLMProviderType.CUSTOM: False,
}

# Allowed domains for cloud providers (user-supplied base_url must match)
_ALLOWED_DOMAINS: dict[LLMProviderType, list[str]] = {
    LLMProviderType.OPENROUTER: ["openrouter.ai"],
    LLMProviderType.OPENAI: ["api.openai.com"],
    LLMProviderType.ANTHROPIC: ["api.anthropic.com"],
}

# Providers that intentionally target localhost (skip SSRF checks)
_LOCAL_PROVIDERS = {
    LLMProviderType.OLLAMA,
    LLMProviderType.CUSTOM,
}

_BLOCKED_HOSTNAMES = {
    "metadata.google.internal",
    "metadata",
}


def _validate_base_url(url: str, provider_type: LLMProviderType) -> None:
    """Validate a base URL to prevent SSRF attacks.

    For cloud providers: restricts to known domains and blocks private IPs.
    Local providers are allowed to target localhost by design.
    """
    if provider_type in _LOCAL_PROVIDERS:
        return

    parsed = urlparse(url)
    hostname = (parsed.hostname or "").lower()

    if not hostname:
        raise ValueError(f"Invalid base URL: {url}")

    if hostname in _BLOCKED_HOSTNAMES:
        raise ValueError("Base URL must not target cloud metadata endpoints")

    try:
        addr = ipaddress.ip_address(hostname)
        if addr.is_private or addr.is_loopback or addr.is_link_local or addr.is_reserved:
            raise ValueError("Base URL must not target private or internal network addresses")
    except ValueError as e:
        if "must not target" in str(e):
            raise
        # Not an IP address, continue with hostname checks

    allowed = _ALLOWED_DOMAINS.get(provider_type)
    if allowed:
        if not any(hostname == d or hostname.endswith(f".{d}") for d in allowed):
            raise ValueError(
                f'Base URL hostname "{hostname}" is not allowed for provider '
                f'"{provider_type.value}". Allowed domains: {", ".join(allowed)}'
            )


def get_provider(
    provider_type: LLMProviderType,
    api_key: str | None = None,
    base_url: str | None = None,
    model: str | None = None,
) -> BaseLLMProvider:
    """Create a provider instance from the given configuration."""
    resolved_url = base_url or DEFAULT_BASE_URLS[provider_type]
    resolved_model = model or DEFAULT_MODELS[provider_type] or None

    # Validate user-supplied base_url against SSRF (skip for default URLs)
    if base_url is not None:
        _validate_base_url(base_url, provider_type)

    if provider_type == LLMProviderType.OPENROUTER:
        return OpenRouterProvider(api_key=api_key, base_url=resolved_url, model=resolved_model)
    elif provider_type == LLMProviderType.ANTHROPIC:
        return AnthropicProvider(api_key=api_key, base_url=resolved_url, model=resolved_model)
    elif provider_type in (LLMProviderType.OPENAI, LLMProviderType.OLLAMA, LLMProviderType.CUSTOM):
        return OpenAICompatProvider(api_key=api_key, base_url=resolved_url, model=resolved_model)
    else:
        raise ValueError(f"Unknown provider type: {provider_type}")


def provider_from_config(config: LLMConfig) -> BaseLLMProvider:
    return get_provider(
        provider_type=config.provider,
        api_key=config.api_key,
        base_url=config.base_url,
        model=config.model,
    )
