"""Pydantic models for LLM provider integration."""

from enum import Enum

from pydantic import BaseModel


class LLMProviderType(str, Enum):
    OPENROUTER = "openrouter"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    OLLAMA = "ollama"
    CUSTOM = "custom"


class LLMConfig(BaseModel):
    provider: LLMProviderType = LLMProviderType.OPENROUTER
    api_key: str | None = None
    base_url: str | None = None
    model: str | None = None
    fallback_model: str | None = None
