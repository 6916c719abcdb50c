"""Content endpoints: relation pages, generated examples and word validation."""

import logging

from fastapi import APIRouter, Depends, Request

from wordsplainer.errors import MalformedResponse, ServiceUnavailable
from wordsplainer.models.content_models import (
    ContentRequest,
    ContentResponse,
    ExampleRequest,
    ExampleResponse,
    ValidationRequest,
    ValidationResponse,
)
from wordsplainer.rate_limit import limiter
from wordsplainer.services.content import BaseContentService, get_content_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["content"])


@router.post("/wordsplainer", response_model=ContentResponse, response_model_by_alias=True)
@limiter.limit("20/minute")
async def relations(
    req: ContentRequest,
    request: Request,
    service: BaseContentService = Depends(get_content_service),
) -> ContentResponse:
    """Return one page of related items for a word."""
    return await service.fetch_relations(req)


@router.post("/wordsplainer/example", response_model=ExampleResponse)
@limiter.limit("20/minute")
async def example(
    req: ExampleRequest,
    request: Request,
    service: BaseContentService = Depends(get_content_service),
) -> ExampleResponse:
    """Generate one example for a relation node."""
    try:
        return await service.fetch_example(req)
    except MalformedResponse as exc:
        logger.exception("Example for %r could not be parsed", req.text)
        raise ServiceUnavailable("Failed to parse AI response", status_code=500) from exc


@router.post("/validate-word", response_model=ValidationResponse, response_model_by_alias=True)
@limiter.limit("20/minute")
async def validate_word(
    req: ValidationRequest,
    request: Request,
    service: BaseContentService = Depends(get_content_service),
) -> ValidationResponse:
    """Judge whether a user-supplied word fits a relationship to the central word."""
    try:
        return await service.validate_word(req)
    except MalformedResponse as exc:
        logger.exception("Validation of %r could not be parsed", req.user_word)
        raise ServiceUnavailable("Failed to parse validation response", status_code=500) from exc
