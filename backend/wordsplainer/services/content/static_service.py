"""Offline content service backed by a small built-in word store.

Used in mock mode (``WORDSPLAINER_MOCK=true``) and by tests. Pagination
follows the same offset/limit contract as the model-backed service.
"""

from __future__ import annotations

from wordsplainer.models.content_models import (
    ContentItem,
    ContentRequest,
    ContentResponse,
    ExampleRequest,
    ExampleResponse,
    RelationType,
    ValidationRequest,
    ValidationResponse,
)
from wordsplainer.services.content.base import BaseContentService

WORD_DATA: dict[str, dict[RelationType, list[ContentItem]]] = {
    "plan": {
        RelationType.MEANING: [
            ContentItem(
                text="a detailed proposal for doing or achieving something.",
                examples=["the plan was to meet at the cafe", "do you have a backup plan?"],
            ),
        ],
        RelationType.CONTEXT: [ContentItem(text=t) for t in ("business", "strategy", "project")],
        RelationType.DERIVATIVES: [
            ContentItem(text=t) for t in ("planning", "planned", "planner", "unplanned")
        ],
        RelationType.SYNONYMS: [
            ContentItem(text=t)
            for t in ("scheme", "strategy", "blueprint", "design", "proposal", "intention")
        ],
        RelationType.COLLOCATIONS: [
            ContentItem(text=t)
            for t in ("make a plan", "stick to the plan", "a cunning plan", "draw up a plan")
        ],
    },
    "happy": {
        RelationType.MEANING: [
            ContentItem(
                text="feeling or showing pleasure or contentment.",
                examples=["she was happy to be home", "a happy coincidence"],
            ),
        ],
        RelationType.SYNONYMS: [
            ContentItem(text=t) for t in ("cheerful", "joyful", "elated", "gleeful", "content")
        ],
        RelationType.OPPOSITES: [ContentItem(text=t) for t in ("sad", "unhappy", "miserable")],
        RelationType.DERIVATIVES: [ContentItem(text=t) for t in ("happiness", "happily")],
        RelationType.IDIOMS: [
            ContentItem(text=t) for t in ("happy-go-lucky", "happy camper", "happy medium")
        ],
    },
}

TRANSLATION_DATA: dict[str, dict[str, str]] = {
    "plan": {"es": "el plan", "fr": "le plan", "de": "der Plan"},
    "happy": {"es": "feliz", "fr": "heureux", "de": "glücklich"},
}

EXAMPLE_TRANSLATIONS: dict[str, dict[str, str]] = {
    "the plan was to meet at the cafe": {
        "es": "el plan era encontrarse en el café",
        "fr": "le plan était de se retrouver au café",
    },
    "she was happy to be home": {
        "es": "ella estaba feliz de estar en casa",
        "fr": "elle était contente d'être à la maison",
    },
}


class StaticContentService(BaseContentService):
    def __init__(
        self,
        words: dict[str, dict[RelationType, list[ContentItem]]] | None = None,
        translations: dict[str, dict[str, str]] | None = None,
    ):
        self.words = WORD_DATA if words is None else words
        self.translations = TRANSLATION_DATA if translations is None else translations

    async def fetch_relations(self, req: ContentRequest) -> ContentResponse:
        word = req.word.lower()

        if req.type == RelationType.TRANSLATION:
            by_lang = self.translations.get(word, {})
            return ContentResponse(
                nodes=[
                    ContentItem(
                        text=by_lang.get(req.language.value, "N/A"),
                        translation_data=by_lang or None,
                    )
                ],
                example_translations=EXAMPLE_TRANSLATIONS,
                has_more=False,
                total=1,
            )

        items = self.words.get(word, {}).get(req.type, [])
        page = items[req.offset: req.offset + req.limit]
        return ContentResponse(
            nodes=[item.model_copy() for item in page],
            has_more=req.offset + req.limit < len(items),
            total=len(items),
        )

    async def fetch_example(self, req: ExampleRequest) -> ExampleResponse:
        if req.type == RelationType.TRANSLATION:
            lang = req.language.value if req.language else ""
            for english, translated in EXAMPLE_TRANSLATIONS.items():
                if req.word.lower() in english and lang in translated:
                    return ExampleResponse(
                        english_example=english, translated_example=translated[lang]
                    )
            return ExampleResponse(english_example=f"I {req.word} it.", translated_example=req.text)

        if req.type == RelationType.MEANING:
            for item in self.words.get(req.word.lower(), {}).get(RelationType.MEANING, []):
                if item.text == req.text and item.examples:
                    return ExampleResponse(example=item.examples[0])

        if req.type == RelationType.IDIOMS:
            return ExampleResponse(
                explanation=f'"{req.text}" is a common expression built on "{req.word}".',
                example=f"Everyone agreed it was a {req.text} moment.",
            )
        return ExampleResponse(example=f'"{req.text}" fits naturally in a sentence about {req.word}.')

    async def validate_word(self, req: ValidationRequest) -> ValidationResponse:
        """Accept the user's word when the store lists it under the named relationship."""
        wanted = req.relationship.lower().rstrip("s")
        relation = next((r for r in RelationType if r.value.rstrip("s") == wanted), None)
        if relation is None:
            return ValidationResponse(is_valid=False, reason=f'Unknown relationship "{req.relationship}".')

        known = {
            item.text.lower()
            for item in self.words.get(req.central_word.lower(), {}).get(relation, [])
        }
        if req.user_word.strip().lower() in known:
            return ValidationResponse(
                is_valid=True,
                reason=f'"{req.user_word}" is listed among the {relation.value} of "{req.central_word}".',
            )
        return ValidationResponse(
            is_valid=False,
            reason=f'"{req.user_word}" is not a known {relation.value} entry for "{req.central_word}".',
        )
