"""Abstract base class for LLM providers."""

from abc import ABC, abstractmethod


class BaseLLMProvider(ABC):
    def __init__(self, api_key: str | None, base_url: str, model: str | None = None):
        self.api_key = api_key
        self.base_url = base_url
        self.model = model

    @abstractmethod
    async def complete(self, messages: list[dict], model: str | None = None, **kwargs) -> str:
        """Send a chat completion request and return the response text.

        ``model`` overrides the provider's configured model for this call.
        """
        ...
