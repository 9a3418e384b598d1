from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from digitalme.models.style import SourceReading
from digitalme.services.profile.constants import (
    ABUNDANT_EVIDENCE_WORDS,
    DEFAULT_WORD_COUNT,
    FALLBACK_QUALITY_WEIGHT,
    QUALITY_WEIGHTS,
    QUANTITY_FACTOR_ABUNDANT,
    QUANTITY_FACTOR_NORMAL,
    QUANTITY_FACTOR_THIN,
    SOURCE_BLOG,
    SOURCE_MAIL_CORPUS,
    THIN_EVIDENCE_WORDS,
    ZERO_WORD_COUNT_SUBSTITUTE,
)


class WeightedSource(BaseModel):
    """A reading annotated with its (possibly normalized) weight."""

    model_config = ConfigDict(frozen=True)

    reading: SourceReading
    weight: float = Field(ge=0)

    @property
    def source_type(self) -> str:
        return self.reading.source_type


class WeightCalculator:
    """
    Scores how much a single reading should count in a merge.

    Pure function: no side effects, easy to test.
    """

    @staticmethod
    def get_quality_weight(source_type: str) -> float:
        """
        Get reliability weight for a source type.

        Args:
            source_type: Wire value of the reading's source type

        Returns:
            Quality weight; unknown types get the fallback weight
        """
        weight = QUALITY_WEIGHTS.get(source_type)
        if weight is None:
            logger.debug(f"No quality weight for source type '{source_type}', using {FALLBACK_QUALITY_WEIGHT}")
            return FALLBACK_QUALITY_WEIGHT
        return weight

    @staticmethod
    def reported_word_count(reading: SourceReading) -> int | None:
        """Word count as reported by the extractor, or None if the source type's field is absent."""
        metrics = reading.metrics
        if reading.source_type == SOURCE_MAIL_CORPUS:
            return metrics.email_words if metrics.email_words is not None else metrics.word_count
        if reading.source_type == SOURCE_BLOG:
            return metrics.total_words if metrics.total_words is not None else metrics.word_count
        if metrics.word_count is not None:
            return metrics.word_count
        return metrics.total_words

    @staticmethod
    def get_word_count(reading: SourceReading) -> int:
        """
        Word count used for the quantity factor.

        Missing counts fall back to a neutral default; a reported zero is lifted just enough to stay
        in the thin bucket.
        """
        count = WeightCalculator.reported_word_count(reading)
        if count is None:
            return DEFAULT_WORD_COUNT
        if count == 0:
            return ZERO_WORD_COUNT_SUBSTITUTE
        return count

    @staticmethod
    def get_quantity_factor(word_count: int) -> float:
        if word_count < THIN_EVIDENCE_WORDS:
            return QUANTITY_FACTOR_THIN
        if word_count <= ABUNDANT_EVIDENCE_WORDS:
            return QUANTITY_FACTOR_NORMAL
        return QUANTITY_FACTOR_ABUNDANT

    @staticmethod
    def calculate_weight(reading: SourceReading) -> float:
        """Quality weight times quantity factor, in (0, 1.5]."""
        quality = WeightCalculator.get_quality_weight(reading.source_type)
        quantity = WeightCalculator.get_quantity_factor(WeightCalculator.get_word_count(reading))
        return quality * quantity

    @staticmethod
    def weigh(readings: list[SourceReading]) -> list[WeightedSource]:
        return [WeightedSource(reading=r, weight=WeightCalculator.calculate_weight(r)) for r in readings]


class WeightNormalizer:
    """Rescales a set of weights so they sum to 1."""

    @staticmethod
    def normalize(sources: list[WeightedSource]) -> list[WeightedSource]:
        if not sources:
            return []
        if len(sources) == 1:
            return [sources[0].model_copy(update={"weight": 1.0})]

        total = sum(source.weight for source in sources)
        if total <= 0:
            logger.warning(f"All {len(sources)} source weights are zero, falling back to equal weights")
            equal = 1.0 / len(sources)
            return [source.model_copy(update={"weight": equal}) for source in sources]

        return [source.model_copy(update={"weight": source.weight / total}) for source in sources]
