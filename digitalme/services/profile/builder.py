from loguru import logger
from pydantic import BaseModel, Field

from digitalme.core.security import redact_identifier
from digitalme.models.profile import AttributeAttribution, AttributeConfidence, SampleCount, StyleProfile
from digitalme.models.style import CodingStyle, SourceReading, WritingStyle
from digitalme.services.profile.confidence import ConfidenceEstimator, validate_source
from digitalme.services.profile.constants import SOURCE_BLOG, SOURCE_CODE_REPO, SOURCE_MAIL_CORPUS
from digitalme.services.profile.mergers import (
    AttributeMergers,
    AvoidanceMerge,
    CategoricalMerge,
    FormalityMerge,
    TermMerge,
)
from digitalme.services.profile.weights import WeightCalculator, WeightNormalizer


class WritingStyleMerge(BaseModel):
    """Merged writing style plus the bookkeeping that produced it."""

    writing: WritingStyle
    source_attribution: dict[str, AttributeAttribution] = Field(default_factory=dict)
    confidence: float
    sources_used: int = 0
    diagnostics: list[str] = Field(default_factory=list)

    tone: CategoricalMerge | None = None
    formality: FormalityMerge | None = None
    sentence_length: CategoricalMerge | None = None
    vocabulary: TermMerge | None = None
    avoidance: AvoidanceMerge | None = None


class ProfileBuilder:
    """
    Builds a style profile from every connected source's reading.

    Design principles:
    - Never fails: invalid or missing evidence degrades to defaults with low confidence
    - Readings are never modified; each build yields a new profile
    - Attribution records exactly which sources decided each attribute
    """

    def __init__(self):
        self.weight_calculator = WeightCalculator()
        self.mergers = AttributeMergers()

    def merge_writing_styles(self, readings: list[SourceReading]) -> WritingStyleMerge:
        """
        Merge writing evidence from several readings into one style.

        Args:
            readings: Readings that carry writing evidence (invalid ones are excluded here)

        Returns:
            WritingStyleMerge with the merged style, attribution and confidence
        """
        diagnostics: list[str] = []
        valid = [reading for reading in readings if validate_source(reading, diagnostics)]
        confidence = ConfidenceEstimator.calculate(valid)

        if not valid:
            logger.info("No valid writing sources, using default writing style")
            return WritingStyleMerge(writing=WritingStyle(), confidence=confidence, diagnostics=diagnostics)

        weighted = WeightNormalizer.normalize(self.weight_calculator.weigh(valid))
        for source in weighted:
            logger.debug(f"Source {source.source_type} weight: {source.weight:.3f}")

        tone = self.mergers.merge_tone(weighted)
        formality = self.mergers.merge_formality(weighted)
        sentence_length = self.mergers.merge_sentence_length(weighted)
        vocabulary = self.mergers.merge_vocabulary(weighted)
        avoidance = self.mergers.merge_avoidance(weighted)

        writing = WritingStyle(
            tone=tone.value,
            formality=formality.value,
            sentence_length=sentence_length.value,
            vocabulary=vocabulary.value,
            avoidance=avoidance.value,
        )
        return WritingStyleMerge(
            writing=writing,
            source_attribution={
                "tone": tone.to_attribution(),
                "formality": formality.to_attribution(),
                "sentenceLength": sentence_length.to_attribution(),
                "vocabulary": vocabulary.to_attribution(),
                "avoidance": avoidance.to_attribution(),
            },
            confidence=confidence,
            sources_used=len(valid),
            diagnostics=diagnostics,
            tone=tone,
            formality=formality,
            sentence_length=sentence_length,
            vocabulary=vocabulary,
            avoidance=avoidance,
        )

    @staticmethod
    def select_coding_style(code_readings: list[SourceReading]) -> CodingStyle:
        for reading in code_readings:
            if reading.coding_style is not None:
                return reading.coding_style.model_copy(deep=True)
        return CodingStyle()

    def count_samples(self, readings: list[SourceReading]) -> SampleCount:
        counts = SampleCount()
        for reading in readings:
            metrics = reading.metrics
            if reading.source_type == SOURCE_CODE_REPO:
                counts.code_lines += metrics.lines_analyzed or 0
                counts.repositories += metrics.total_repos or 0
                continue
            counts.text_words += self.weight_calculator.reported_word_count(reading) or 0
            if reading.source_type == SOURCE_MAIL_CORPUS:
                counts.emails += metrics.emails or 0
            elif reading.source_type == SOURCE_BLOG:
                counts.articles += metrics.total_posts or 0
        return counts

    def build_profile(self, readings: list[SourceReading], user_id: str) -> StyleProfile:
        """
        Build a fresh, version 1 profile.

        Args:
            readings: Every available source reading
            user_id: Owner of the profile

        Returns:
            StyleProfile (the default profile when no reading is usable)
        """
        code_readings = [reading for reading in readings if reading.source_type == SOURCE_CODE_REPO]
        # Code readings only count as writing evidence when their extractor reported a writing style
        writing_readings = [
            reading
            for reading in readings
            if reading.writing_style is not None or reading.source_type != SOURCE_CODE_REPO
        ]

        merge = self.merge_writing_styles(writing_readings)
        sample_count = self.count_samples(readings)
        confidence = ConfidenceEstimator.apply_code_bonus(merge.confidence, sample_count.code_lines)

        profile = StyleProfile(
            user_id=user_id,
            writing=merge.writing,
            coding=self.select_coding_style(code_readings),
            source_attribution=merge.source_attribution,
            confidence=confidence,
            sample_count=sample_count,
            attribute_confidence=AttributeConfidence.uniform(confidence),
        )
        logger.info(
            f"[{redact_identifier(user_id)}] Built profile from {merge.sources_used}/{len(readings)} sources, "
            f"confidence {confidence}"
        )
        return profile

    def recalculate_profile(self, current: StyleProfile, readings: list[SourceReading]) -> StyleProfile:
        """
        Rebuild after the source set changed.

        The result keeps the profile identity and learning history and becomes the next version.
        """
        rebuilt = self.build_profile(readings, current.user_id)
        rebuilt.sample_count.conversation_words = current.sample_count.conversation_words
        return current.next_version(
            writing=rebuilt.writing,
            coding=rebuilt.coding,
            source_attribution=rebuilt.source_attribution,
            confidence=rebuilt.confidence,
            sample_count=rebuilt.sample_count,
            attribute_confidence=rebuilt.attribute_confidence,
        )
