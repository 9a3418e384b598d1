from typing import Any, Literal

from loguru import logger
from pydantic import ConfigDict, Field, field_validator

from digitalme.models.base import CamelModel
from digitalme.core.constants import (
    DEFAULT_AVOIDANCE,
    DEFAULT_FORMALITY,
    DEFAULT_SENTENCE_LENGTH,
    DEFAULT_TONE,
    DEFAULT_VOCABULARY,
    FORMALITY_VALUES,
    MAX_AVOIDANCE_TERMS,
    MAX_VOCABULARY_TERMS,
    SENTENCE_LENGTH_VALUES,
    TONE_VALUES,
)

Tone = Literal["conversational", "professional", "neutral"]
Formality = Literal["casual", "balanced", "formal"]
SentenceLength = Literal["short", "medium", "long"]


def normalize_choice(value: Any, allowed: tuple[str, ...], default: str, attribute: str) -> str:
    """Map any input onto one of ``allowed``, falling back to ``default``."""
    if isinstance(value, str):
        candidate = value.strip().lower()
        if candidate in allowed:
            return candidate
    if value is not None:
        logger.debug(f"Unrecognized {attribute} value {value!r}, using default '{default}'")
    return default


def normalize_terms(value: Any, limit: int | None = None) -> list[str]:
    """Keep non-empty string terms, first occurrence wins, at most ``limit`` of them."""
    if not isinstance(value, (list, tuple)):
        return []
    terms: list[str] = []
    for term in value:
        if not isinstance(term, str):
            continue
        term = term.strip()
        if term and term not in terms:
            terms.append(term)
    return terms[:limit]


class WritingStyle(CamelModel):
    """
    Normalized writing style.

    Every field always holds an allowed value: unknown or missing input falls back to the
    documented default instead of being left unset.
    """

    tone: Tone = DEFAULT_TONE
    formality: Formality = DEFAULT_FORMALITY
    sentence_length: SentenceLength = DEFAULT_SENTENCE_LENGTH
    vocabulary: list[str] = Field(default_factory=lambda: list(DEFAULT_VOCABULARY), max_length=MAX_VOCABULARY_TERMS)
    avoidance: list[str] = Field(default_factory=lambda: list(DEFAULT_AVOIDANCE), max_length=MAX_AVOIDANCE_TERMS)

    @field_validator("tone", mode="before")
    @classmethod
    def _normalize_tone(cls, value: Any) -> str:
        return normalize_choice(value, TONE_VALUES, DEFAULT_TONE, "tone")

    @field_validator("formality", mode="before")
    @classmethod
    def _normalize_formality(cls, value: Any) -> str:
        return normalize_choice(value, FORMALITY_VALUES, DEFAULT_FORMALITY, "formality")

    @field_validator("sentence_length", mode="before")
    @classmethod
    def _normalize_sentence_length(cls, value: Any) -> str:
        return normalize_choice(value, SENTENCE_LENGTH_VALUES, DEFAULT_SENTENCE_LENGTH, "sentenceLength")

    @field_validator("vocabulary", mode="before")
    @classmethod
    def _normalize_vocabulary(cls, value: Any) -> list[str]:
        return normalize_terms(value, MAX_VOCABULARY_TERMS) or list(DEFAULT_VOCABULARY)

    @field_validator("avoidance", mode="before")
    @classmethod
    def _normalize_avoidance(cls, value: Any) -> list[str]:
        terms = [term for term in normalize_terms(value) if term.lower() != "none"]
        return terms[:MAX_AVOIDANCE_TERMS] or list(DEFAULT_AVOIDANCE)


class ReadingStyle(CamelModel):
    """Writing style as reported by an extractor. Fields may be missing; values are not yet normalized."""

    model_config = ConfigDict(frozen=True, extra="allow")

    tone: str | None = None
    formality: str | None = None
    sentence_length: str | None = None
    vocabulary: list[str] | None = None
    avoidance: list[str] | None = None


class CodingStyle(CamelModel):
    model_config = ConfigDict(extra="allow")

    language: str = "unknown"
    framework: str | None = None
    component_style: str | None = None
    naming_convention: str | None = None
    comment_frequency: str = "moderate"
    patterns: list[str] = Field(default_factory=list)


class SourceMetrics(CamelModel):
    """Volume counters reported alongside a reading. Which ones are present depends on the source type."""

    model_config = ConfigDict(frozen=True, extra="allow")

    word_count: int | None = Field(default=None, ge=0)
    total_words: int | None = Field(default=None, ge=0)
    email_words: int | None = Field(default=None, ge=0)
    emails: int | None = Field(default=None, ge=0)
    total_posts: int | None = Field(default=None, ge=0)
    lines_analyzed: int | None = Field(default=None, ge=0)
    total_repos: int | None = Field(default=None, ge=0)


class SourceReading(CamelModel):
    """One connected source's extracted style and metrics. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    source_type: str
    writing_style: ReadingStyle | None = None
    metrics: SourceMetrics = Field(default_factory=SourceMetrics)
    coding_style: CodingStyle | None = None
