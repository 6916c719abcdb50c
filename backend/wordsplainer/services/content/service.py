"""Server-side content service singleton, selected from the environment."""

from __future__ import annotations

import logging

from wordsplainer.config import llm_config_from_env, mock_mode_enabled
from wordsplainer.services.content.base import BaseContentService

logger = logging.getLogger(__name__)

# Module-level singleton
_service: BaseContentService | None = None


def create_content_service() -> BaseContentService:
    """Static word store in mock mode, the configured LLM otherwise."""
    if mock_mode_enabled():
        from wordsplainer.services.content.static_service import StaticContentService

        logger.info("Content service: static mock data")
        return StaticContentService()

    from wordsplainer.services.content.llm_service import LLMContentService

    config = llm_config_from_env()
    logger.info("Content service: %s model %s", config.provider.value, config.model)
    return LLMContentService.from_config(config)


def get_content_service() -> BaseContentService:
    global _service
    if _service is None:
        _service = create_content_service()
    return _service


def reset_content_service() -> None:
    """Drop the cached service. Used in tests."""
    global _service
    _service = None
