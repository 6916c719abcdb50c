"""Prompt builders and response parsing for relation, example and validation requests."""

from __future__ import annotations

import json
import logging
import re

from pydantic import ValidationError

from wordsplainer.models.content_models import (
    LANGUAGE_NAMES,
    ContentItem,
    ContentRequest,
    ContentResponse,
    ExampleRequest,
    ExampleResponse,
    Register,
    RelationType,
    ValidationRequest,
    ValidationResponse,
)
from wordsplainer.errors import MalformedResponse

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a helpful English language learning assistant. Always respond with valid JSON only. "
    "Do not include any explanatory text outside the JSON structure. Be accurate and educational."
)

VALIDATOR_PROMPT = (
    "You are a strict linguistic validator. You will receive a central word, a user's word, and "
    "their supposed relationship (e.g., synonym, opposite). Determine if the user's word is a valid, "
    "common example of that relationship to the central word. Be critical. Respond ONLY with a JSON "
    'object with two keys: "isValid" (a boolean) and "reason" (a brief, one-sentence explanation '
    "for your decision)."
)

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")

_LIST_INSTRUCTIONS: dict[RelationType, str] = {
    RelationType.CONTEXT: "different contexts or situations where the word \"{word}\" is commonly used",
    RelationType.DERIVATIVES: "word forms derived from \"{word}\" (verb forms, adjectives, adverbs, nouns)",
    RelationType.IDIOMS: "common idioms, phrases, or expressions that include the word \"{word}\"",
    RelationType.COLLOCATIONS: "common word combinations that naturally go with \"{word}\"",
    RelationType.SYNONYMS: "synonyms for the word \"{word}\"",
    RelationType.OPPOSITES: "antonyms or opposites for the word \"{word}\"",
}

_REGISTER_HINTS: dict[Register, str] = {
    Register.CONVERSATIONAL: "Prefer everyday, conversational usage.",
    Register.ACADEMIC: "Prefer formal, academic usage.",
}


def _messages(system: str, user: str) -> list[dict[str, str]]:
    return [
        {"role": "system", "content": system},
        {"role": "user", "content": user},
    ]


def build_relation_prompt(req: ContentRequest) -> list[dict[str, str]]:
    """Build chat messages for one page of a relation view."""
    word = req.word
    register = _REGISTER_HINTS[req.register]

    if req.type == RelationType.TRANSLATION:
        lang = req.language.value
        body = (
            f'Translate the word "{word}" to {LANGUAGE_NAMES[req.language]} and provide 2 example '
            "sentences with their translations. Format as JSON:\n"
            "{\n"
            f'  "nodes": [{{"text": "translated_word_here", "translationData": {{"{lang}": "translated_word_here"}}}}],\n'
            '  "exampleTranslations": {\n'
            f'    "First example sentence in English.": {{"{lang}": "Translation of first sentence"}},\n'
            f'    "Second example sentence in English.": {{"{lang}": "Translation of second sentence"}}\n'
            "  },\n"
            '  "hasMore": false,\n'
            '  "total": 1\n'
            "}"
        )
    elif req.type == RelationType.MEANING:
        body = (
            f'Provide definition number {req.offset + 1} (and up to {req.limit} in total) of the word '
            f'"{word}", most common sense first, each with 2 example sentences. Format as JSON:\n'
            '{"nodes": [{"text": "Clear, concise definition", "examples": ["Example 1", "Example 2"]}], '
            '"hasMore": true, "total": 3}\n'
            'Set "hasMore" to false when no further distinct senses exist.'
        )
    else:
        what = _LIST_INSTRUCTIONS[req.type].format(word=word)
        body = (
            f"List {req.limit} {what}, skipping the {req.offset} most common ones already shown. "
            f'Do not include "{word}" itself. Format as JSON:\n'
            '{"nodes": [{"text": "item 1"}, {"text": "item 2"}], "hasMore": true, "total": 12}\n'
            'Set "hasMore" to false when the list is exhausted.'
        )

    user = f"{body}\n\n{register}\n\nRespond ONLY with valid JSON, no additional text or explanations."
    return _messages(SYSTEM_PROMPT, user)


def build_example_prompt(req: ExampleRequest) -> list[dict[str, str]]:
    """Build chat messages for the single example attached to a relation node.

    The reply shape depends on the source variant: idioms get an explanation,
    translations get an English/translated sentence pair.
    """
    word, text = req.word, req.text
    if req.type == RelationType.IDIOMS:
        body = (
            f'Explain the idiom "{text}" in one sentence and use it in one natural example sentence. '
            'Format as JSON: {"explanation": "...", "example": "..."}'
        )
    elif req.type == RelationType.MEANING:
        body = (
            f'Write one example sentence using "{word}" in this sense: "{text}". '
            'Format as JSON: {"example": "..."}'
        )
    elif req.type == RelationType.CONTEXT:
        body = (
            f'Write one example sentence using "{word}" in the context of {text}. '
            'Format as JSON: {"example": "..."}'
        )
    elif req.type == RelationType.TRANSLATION:
        language = LANGUAGE_NAMES[req.language] if req.language else "the target language"
        body = (
            f'Write one short English sentence using "{word}" and its {language} translation, '
            f'which must use "{text}". '
            'Format as JSON: {"english_example": "...", "translated_example": "..."}'
        )
    else:
        body = (
            f'Write one example sentence using "{text}" ({req.type.value} of "{word}"). '
            'Format as JSON: {"example": "..."}'
        )

    user = f"{body}\n\n{_REGISTER_HINTS[req.register]}\n\nRespond ONLY with valid JSON."
    return _messages(SYSTEM_PROMPT, user)


def build_validation_prompt(req: ValidationRequest) -> list[dict[str, str]]:
    user = (
        f'Central Word: "{req.central_word}", User Word: "{req.user_word}", '
        f'Relationship: "{req.relationship}"'
    )
    return _messages(VALIDATOR_PROMPT, user)


def extract_json(text: str) -> dict:
    """Pull the first JSON object out of an LLM reply (tolerates fences and chatter)."""
    match = _JSON_OBJECT.search(text.strip())
    candidate = match.group(0) if match else text.strip()
    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as exc:
        raise MalformedResponse(f"Unparseable model output: {exc}") from exc
    if not isinstance(data, dict):
        raise MalformedResponse("Model output is not a JSON object")
    return data


def placeholder_response(word: str, relation: RelationType, reason: str = "unparseable") -> ContentResponse:
    """Single-node stand-in used when the model's reply cannot be used."""
    if reason == "empty":
        text = f'No {relation.value} data available for "{word}"'
    else:
        text = f'Unable to process "{word}" for {relation.value}. Please try again.'
    return ContentResponse(nodes=[ContentItem(text=text)], has_more=False, total=1)


def parse_relation_response(raw: str, req: ContentRequest) -> ContentResponse:
    """Parse a relation reply, degrading to a placeholder node instead of failing."""
    try:
        data = extract_json(raw)
    except MalformedResponse:
        logger.warning("Unparseable %s reply for %r", req.type.value, req.word)
        return placeholder_response(req.word, req.type)

    nodes = data.get("nodes")
    if not isinstance(nodes, list):
        return placeholder_response(req.word, req.type, reason="empty")
    # Models sometimes return bare strings instead of {"text": ...}
    data["nodes"] = [{"text": n} if isinstance(n, str) else n for n in nodes]
    data.setdefault("hasMore", False)
    if data.get("total") is None:
        data["total"] = len(data["nodes"])

    try:
        resp = ContentResponse.model_validate(data)
    except ValidationError:
        logger.warning("Invalid %s payload for %r", req.type.value, req.word)
        return placeholder_response(req.word, req.type)

    # LLMs often overshoot the requested page size
    if len(resp.nodes) > req.limit:
        resp.nodes = resp.nodes[: req.limit]
    return resp


def parse_example_response(raw: str) -> ExampleResponse:
    data = extract_json(raw)
    try:
        resp = ExampleResponse.model_validate(data)
    except ValidationError as exc:
        raise MalformedResponse("Invalid example payload") from exc
    if not (resp.example or resp.explanation or resp.english_example):
        raise MalformedResponse("Example payload has no text")
    return resp


def parse_validation_response(raw: str) -> ValidationResponse:
    data = extract_json(raw)
    try:
        return ValidationResponse.model_validate(data)
    except ValidationError as exc:
        raise MalformedResponse("Invalid validation payload") from exc
