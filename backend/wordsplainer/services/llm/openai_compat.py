"""OpenAI-compatible provider. Covers OpenAI, OpenRouter, Ollama and custom endpoints."""

import openai

from wordsplainer.services.llm.base import BaseLLMProvider


class OpenAICompatProvider(BaseLLMProvider):
    """Provider for any OpenAI-compatible API."""

    default_headers: dict[str, str] = {}

    def _client(self) -> openai.AsyncOpenAI:
        return openai.AsyncOpenAI(
            api_key=self.api_key or "unused",
            base_url=self.base_url,
            default_headers=self.default_headers or None,
        )

    async def complete(self, messages: list[dict], model: str | None = None, **kwargs) -> str:
        model = model or self.model
        if not model:
            raise ValueError("No model selected")
        resp = await self._client().chat.completions.create(
            model=model,
            messages=messages,
            **kwargs,
        )
        if not resp.choices:
            raise ValueError("No response from AI model")
        return resp.choices[0].message.content or ""


class OpenRouterProvider(OpenAICompatProvider):
    """OpenRouter: OpenAI-compatible inference plus app attribution headers."""

    default_headers = {
        "HTTP-Referer": "http://localhost:8888",
        "X-Title": "Wordsplainer App",
    }
