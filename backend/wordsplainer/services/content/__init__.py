"""Content services: relation pages, generated examples, word validation."""

from wordsplainer.services.content.base import BaseContentService
from wordsplainer.services.content.http_client import HttpContentService
from wordsplainer.services.content.llm_service import LLMContentService
from wordsplainer.services.content.service import get_content_service, reset_content_service
from wordsplainer.services.content.static_service import StaticContentService

__all__ = [
    "BaseContentService",
    "HttpContentService",
    "LLMContentService",
    "StaticContentService",
    "get_content_service",
    "reset_content_service",
]
