"""Content service backed directly by a chat-completion provider."""

from __future__ import annotations

import logging

from wordsplainer.errors import MalformedResponse, ServiceUnavailable
from wordsplainer.models.content_models import (
    ContentRequest,
    ContentResponse,
    ExampleRequest,
    ExampleResponse,
    ValidationRequest,
    ValidationResponse,
)
from wordsplainer.models.llm_models import LLMConfig
from wordsplainer.services.content.base import BaseContentService
from wordsplainer.services.content.prompts import (
    build_example_prompt,
    build_relation_prompt,
    build_validation_prompt,
    parse_example_response,
    parse_relation_response,
    parse_validation_response,
)
from wordsplainer.services.llm.base import BaseLLMProvider
from wordsplainer.services.llm.registry import provider_from_config

logger = logging.getLogger(__name__)

_COMPLETION_KWARGS = {"temperature": 0.7, "max_tokens": 1000}


def _friendly_message(exc: Exception) -> tuple[str, int]:
    """Map a provider failure to a user-facing message and HTTP status."""
    text = str(exc).lower()
    if "rate limit" in text or "429" in text:
        return "AI service rate limit exceeded. Please try again later.", 429
    if "api key" in text or "401" in text:
        return "API configuration error", 500
    if "timeout" in text or "connect" in text or "network" in text:
        return "Network error connecting to AI service. Please try again.", 503
    return "AI service unavailable. Please try again.", 503


class LLMContentService(BaseContentService):
    """Builds prompts, calls the model and parses its JSON reply.

    A failed call is retried once with ``fallback_model`` (when configured and
    different from the primary); after that the failure surfaces as
    ServiceUnavailable.
    """

    def __init__(self, provider: BaseLLMProvider, fallback_model: str | None = None):
        self.provider = provider
        self.fallback_model = fallback_model

    @classmethod
    def from_config(cls, config: LLMConfig) -> LLMContentService:
        return cls(provider_from_config(config), fallback_model=config.fallback_model)

    async def _complete(self, messages: list[dict], model: str | None = None) -> str:
        models = [model or self.provider.model]
        if self.fallback_model and self.fallback_model not in models:
            models.append(self.fallback_model)

        last_exc: Exception | None = None
        for candidate in models:
            try:
                return await self.provider.complete(messages, model=candidate, **_COMPLETION_KWARGS)
            except Exception as exc:
                logger.warning("Completion with model %s failed: %s", candidate, exc)
                last_exc = exc

        message, status = _friendly_message(last_exc)
        raise ServiceUnavailable(message, status_code=status) from last_exc

    async def fetch_relations(self, req: ContentRequest) -> ContentResponse:
        raw = await self._complete(build_relation_prompt(req), model=req.model)
        return parse_relation_response(raw, req)

    async def fetch_example(self, req: ExampleRequest) -> ExampleResponse:
        raw = await self._complete(build_example_prompt(req))
        return parse_example_response(raw)

    async def validate_word(self, req: ValidationRequest) -> ValidationResponse:
        raw = await self._complete(build_validation_prompt(req))
        try:
            return parse_validation_response(raw)
        except MalformedResponse:
            logger.exception("Validator reply unusable for %r", req.user_word)
            raise
