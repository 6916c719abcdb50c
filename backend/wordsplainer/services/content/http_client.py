"""Client-side content service talking to the Wordsplainer API over HTTP."""

from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from wordsplainer.errors import MalformedResponse, ServiceUnavailable
from wordsplainer.models.content_models import (
    ContentRequest,
    ContentResponse,
    ExampleRequest,
    ExampleResponse,
)
from wordsplainer.services.content.base import BaseContentService
from wordsplainer.services.content.prompts import placeholder_response

logger = logging.getLogger(__name__)

RELATIONS_PATH = "/api/wordsplainer"
EXAMPLE_PATH = "/api/wordsplainer/example"


def _error_message(resp: httpx.Response) -> str:
    """Best human-readable message from an error response."""
    try:
        data = resp.json()
    except ValueError:
        return resp.text or f"HTTP {resp.status_code} error"
    if isinstance(data, dict):
        detail = data.get("error") or data.get("detail")
        if isinstance(detail, list) and detail:
            detail = detail[0].get("msg") if isinstance(detail[0], dict) else detail[0]
        if detail:
            return str(detail)
    return f"Server error: {resp.status_code}"


class HttpContentService(BaseContentService):
    def __init__(
        self,
        base_url: str = "http://localhost:8888",
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ):
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def _post(self, path: str, payload: dict, what: str) -> httpx.Response:
        try:
            resp = await self.client.post(path, json=payload)
        except httpx.HTTPError as exc:
            logger.exception("Request to %s failed", path)
            raise ServiceUnavailable(f"Failed to fetch {what}: {exc}") from exc
        if resp.is_error:
            message = _error_message(resp)
            logger.warning("%s answered %d: %s", path, resp.status_code, message)
            raise ServiceUnavailable(f"Failed to fetch {what}: {message}", status_code=resp.status_code)
        return resp

    async def fetch_relations(self, req: ContentRequest) -> ContentResponse:
        what = f'{req.type.value} for "{req.word}"'
        resp = await self._post(RELATIONS_PATH, req.model_dump(mode="json", exclude_none=True), what)
        try:
            return ContentResponse.model_validate(resp.json())
        except (ValueError, ValidationError):
            logger.warning("Malformed %s response, using placeholder", what)
            return placeholder_response(req.word, req.type)

    async def fetch_example(self, req: ExampleRequest) -> ExampleResponse:
        what = f'an example for "{req.text}"'
        resp = await self._post(EXAMPLE_PATH, req.model_dump(mode="json", exclude_none=True), what)
        try:
            return ExampleResponse.model_validate(resp.json())
        except (ValueError, ValidationError) as exc:
            raise MalformedResponse(f"Malformed response for {what}") from exc
