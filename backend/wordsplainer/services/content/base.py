"""Abstract content service: the contract the graph controller depends on."""

from abc import ABC, abstractmethod

from wordsplainer.errors import ServiceUnavailable
from wordsplainer.models.content_models import (
    ContentRequest,
    ContentResponse,
    ExampleRequest,
    ExampleResponse,
    ValidationRequest,
    ValidationResponse,
)


class BaseContentService(ABC):
    @abstractmethod
    async def fetch_relations(self, req: ContentRequest) -> ContentResponse:
        """Return one page of relation items for ``req.word``.

        Raises ServiceUnavailable when the service cannot answer.
        """
        ...

    @abstractmethod
    async def fetch_example(self, req: ExampleRequest) -> ExampleResponse:
        """Return one generated example for a relation node.

        Raises ServiceUnavailable or MalformedResponse.
        """
        ...

    async def validate_word(self, req: ValidationRequest) -> ValidationResponse:
        raise ServiceUnavailable("Word validation is not available", status_code=501)

    async def aclose(self) -> None:
        """Release network resources, if any."""
