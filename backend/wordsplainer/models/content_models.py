"""Pydantic models for the content service contract (relations, examples, validation)."""

from __future__ import annotations

import re
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class RelationType(str, Enum):
    MEANING = "meaning"
    CONTEXT = "context"
    DERIVATIVES = "derivatives"
    IDIOMS = "idioms"
    COLLOCATIONS = "collocations"
    SYNONYMS = "synonyms"
    OPPOSITES = "opposites"
    TRANSLATION = "translation"


class Language(str, Enum):
    SPANISH = "es"
    FRENCH = "fr"
    GERMAN = "de"
    JAPANESE = "ja"
    ITALIAN = "it"
    RUSSIAN = "ru"
    PORTUGUESE = "pt"
    CHINESE = "zh"
    KOREAN = "ko"
    ARABIC = "ar"


LANGUAGE_NAMES: dict[Language, str] = {
    Language.SPANISH: "Spanish",
    Language.FRENCH: "French",
    Language.GERMAN: "German",
    Language.JAPANESE: "Japanese",
    Language.ITALIAN: "Italian",
    Language.RUSSIAN: "Russian",
    Language.PORTUGUESE: "Portuguese",
    Language.CHINESE: "Chinese",
    Language.KOREAN: "Korean",
    Language.ARABIC: "Arabic",
}


class Register(str, Enum):
    CONVERSATIONAL = "conversational"
    ACADEMIC = "academic"


# Models the public endpoint accepts; anything else is rejected with 422.
ALLOWED_MODELS = (
    "google/gemma-3-12b-it:free",
    "openai/gpt-4o-mini",
)

_WORD_PATTERN = re.compile(r"^[a-zA-Z\s\-']+$")


def _check_word(value: str) -> str:
    value = value.strip()
    if not value or len(value) > 100 or not _WORD_PATTERN.match(value):
        raise ValueError("Invalid word parameter")
    return value


class ContentRequest(BaseModel):
    word: str
    type: RelationType
    offset: int = Field(default=0, ge=0)
    limit: int = Field(default=3, gt=0, le=20)
    language: Language | None = None
    register: Register = Register.CONVERSATIONAL
    model: str | None = None

    @field_validator("word")
    @classmethod
    def _validate_word(cls, value: str) -> str:
        return _check_word(value)

    @field_validator("model")
    @classmethod
    def _check_model(cls, value: str | None) -> str | None:
        if value is not None and value not in ALLOWED_MODELS:
            raise ValueError("Invalid model parameter")
        return value

    @model_validator(mode="after")
    def _translation_needs_language(self) -> ContentRequest:
        if self.type == RelationType.TRANSLATION and self.language is None:
            raise ValueError("Invalid or missing language parameter for translation")
        return self


class ContentItem(BaseModel):
    """One relation item as returned by the content service."""

    model_config = ConfigDict(populate_by_name=True)

    text: str = ""
    examples: list[str] = []
    translation_data: dict[str, str] | None = Field(default=None, alias="translationData")


class ContentResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    nodes: list[ContentItem] = []
    has_more: bool = Field(default=False, alias="hasMore")
    total: int | None = None
    example_translations: dict[str, dict[str, str]] | None = Field(
        default=None, alias="exampleTranslations"
    )


class ExampleRequest(BaseModel):
    """Request for a single generated example attached to a relation node.

    ``word`` is the central word, ``text`` the literal text of the source node
    (a definition, a context string, a translated word, ...).
    """

    word: str
    text: str = Field(min_length=1, max_length=500)
    type: RelationType
    language: Language | None = None
    register: Register = Register.CONVERSATIONAL

    @field_validator("word")
    @classmethod
    def _validate_word(cls, value: str) -> str:
        return _check_word(value)


class ExampleResponse(BaseModel):
    example: str | None = None
    explanation: str | None = None
    english_example: str | None = None
    translated_example: str | None = None


class ValidationRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    central_word: str = Field(alias="centralWord", min_length=1, max_length=100)
    user_word: str = Field(alias="userWord", min_length=1, max_length=100)
    relationship: str = Field(min_length=1, max_length=50)


class ValidationResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    is_valid: bool = Field(alias="isValid")
    reason: str = ""
