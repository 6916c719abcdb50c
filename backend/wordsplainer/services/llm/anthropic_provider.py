"""Anthropic Claude provider."""

import logging

import anthropic

from wordsplainer.services.llm.base import BaseLLMProvider

logger = logging.getLogger(__name__)


class AnthropicProvider(BaseLLMProvider):
    """Provider for Anthropic Claude models."""

    async def complete(self, messages: list[dict], model: str | None = None, **kwargs) -> str:
        model = model or self.model
        if not model:
            raise ValueError("No model selected")
        client = anthropic.AsyncAnthropic(api_key=self.api_key)

        # Anthropic API requires system messages as a separate parameter
        system_text = None
        non_system = []
        for msg in messages:
            if msg.get("role") == "system":
                system_text = msg["content"]
            else:
                non_system.append(msg)

        create_kwargs = {
            "model": model,
            "messages": non_system,
            "max_tokens": kwargs.pop("max_tokens", 1000),
            **kwargs,
        }
        if system_text:
            create_kwargs["system"] = system_text

        resp = await client.messages.create(**create_kwargs)
        return resp.content[0].text
