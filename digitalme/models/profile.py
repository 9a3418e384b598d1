from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from pydantic import ConfigDict, Field, model_validator

from digitalme.models.base import CamelModel
from digitalme.models.style import CodingStyle, WritingStyle
from digitalme.core.constants import CONFIDENCE_CEILING, CONFIDENCE_NO_SOURCES


class SourceContribution(CamelModel):
    """How much one source contributed to a merged value, as a whole percentage."""

    type: str
    contribution: int = Field(ge=0, le=100)


class AttributeAttribution(CamelModel):
    """
    Attribution for one merged attribute.

    Categorical attributes carry a flat list of contributions for the winning value; vocabulary and
    avoidance carry contributions keyed by selected term.
    """

    value: str | list[str]
    sources: list[SourceContribution] | dict[str, list[SourceContribution]] = Field(default_factory=list)


class SampleCount(CamelModel):
    code_lines: int = 0
    text_words: int = 0
    repositories: int = 0
    articles: int = 0
    emails: int = 0
    conversation_words: int = 0


class AttributeConfidence(CamelModel):
    tone: float = Field(default=CONFIDENCE_NO_SOURCES, ge=0, le=CONFIDENCE_CEILING)
    formality: float = Field(default=CONFIDENCE_NO_SOURCES, ge=0, le=CONFIDENCE_CEILING)
    sentence_length: float = Field(default=CONFIDENCE_NO_SOURCES, ge=0, le=CONFIDENCE_CEILING)
    vocabulary: float = Field(default=CONFIDENCE_NO_SOURCES, ge=0, le=CONFIDENCE_CEILING)
    avoidance: float = Field(default=CONFIDENCE_NO_SOURCES, ge=0, le=CONFIDENCE_CEILING)

    @classmethod
    def uniform(cls, confidence: float) -> "AttributeConfidence":
        value = min(max(confidence, 0.0), CONFIDENCE_CEILING)
        return cls(tone=value, formality=value, sentence_length=value, vocabulary=value, avoidance=value)

    def mean(self) -> float:
        values = [self.tone, self.formality, self.sentence_length, self.vocabulary, self.avoidance]
        return sum(values) / len(values)


class LearningMetadata(CamelModel):
    enabled: bool = True
    last_refinement: datetime | None = None
    total_refinements: int = 0
    words_from_conversations: int = 0


class StyleProfile(CamelModel):
    """
    Versioned style profile.

    Never edited in place: every rebuild or refinement produces a new instance with ``version``
    incremented by one and ``previous_version`` pointing at the value it replaced. Unknown fields
    are kept so they round-trip through refinement untouched.
    """

    model_config = ConfigDict(extra="allow")

    id: str = Field(default_factory=lambda: uuid4().hex)
    user_id: str
    version: int = Field(default=1, ge=1)
    previous_version: int | None = None
    last_updated: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    writing: WritingStyle = Field(default_factory=WritingStyle)
    coding: CodingStyle | None = None
    source_attribution: dict[str, AttributeAttribution] = Field(default_factory=dict)
    confidence: float = Field(default=CONFIDENCE_NO_SOURCES, ge=0, le=CONFIDENCE_CEILING)
    sample_count: SampleCount = Field(default_factory=SampleCount)

    attribute_confidence: AttributeConfidence | None = None
    learning_metadata: LearningMetadata = Field(default_factory=LearningMetadata)

    @model_validator(mode="before")
    @classmethod
    def _accept_legacy_names(cls, data: Any) -> Any:
        # Older profiles stored the sections as writingStyle / codingStyle
        if isinstance(data, dict):
            data = dict(data)
            if "writing" not in data and "writingStyle" in data:
                data["writing"] = data.pop("writingStyle")
            if "coding" not in data and "codingStyle" in data:
                data["coding"] = data.pop("codingStyle")
        return data

    def next_version(self, **changes: Any) -> "StyleProfile":
        """Copy of this profile as the next version, with ``changes`` applied."""
        return self.model_copy(
            update={
                "version": self.version + 1,
                "previous_version": self.version,
                "last_updated": datetime.now(timezone.utc),
                **changes,
            },
            deep=True,
        )


def migrate_profile(profile: StyleProfile) -> StyleProfile:
    """
    Bring a profile created before conversational learning up to date.

    Fills ``attribute_confidence`` from the overall confidence when it is missing. Returns the
    same instance when nothing needs to change.
    """
    if profile.attribute_confidence is not None:
        return profile
    return profile.model_copy(update={"attribute_confidence": AttributeConfidence.uniform(profile.confidence)})
