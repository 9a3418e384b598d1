import math
from collections import defaultdict
from typing import Literal

from loguru import logger
from pydantic import BaseModel, Field

from digitalme.core.constants import (
    AVOIDANCE_NONE,
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
from digitalme.models.profile import AttributeAttribution, SourceContribution
from digitalme.models.style import normalize_choice, normalize_terms
from digitalme.services.profile.constants import (
    AVOIDANCE_MIN_APPEARANCE_PERCENT,
    AVOIDANCE_MIN_WEIGHT,
    FORMALITY_BALANCED_UP_TO,
    FORMALITY_CASUAL_BELOW,
    FORMALITY_SCORES,
    SOURCE_PRIORITY,
    WEIGHT_TIE_TOLERANCE,
)
from digitalme.services.profile.weights import WeightedSource


def contribution_percent(weight: float) -> int:
    """Weight in [0, 1] as a whole percentage, rounding halves up."""
    return min(100, max(0, math.floor(weight * 100 + 0.5)))


def contribution_of(source: WeightedSource) -> SourceContribution:
    return SourceContribution(type=source.source_type, contribution=contribution_percent(source.weight))


def sources_carrying(sources: list[WeightedSource], attribute: str) -> list[WeightedSource]:
    """Sources whose writing style actually reports ``attribute``."""
    return [
        source
        for source in sources
        if source.reading.writing_style is not None and getattr(source.reading.writing_style, attribute) is not None
    ]


class CategoricalMerge(BaseModel):
    value: str
    sources: list[SourceContribution] = Field(default_factory=list)

    def to_attribution(self) -> AttributeAttribution:
        return AttributeAttribution(value=self.value, sources=self.sources)


class FormalityMerge(CategoricalMerge):
    average_score: float | None = None


class TermMerge(BaseModel):
    value: list[str]
    sources: dict[str, list[SourceContribution]] = Field(default_factory=dict)
    term_scores: dict[str, float] = Field(default_factory=dict)

    def to_attribution(self) -> AttributeAttribution:
        return AttributeAttribution(value=self.value, sources=self.sources)


class TermStats(BaseModel):
    count: int = 0
    weight: float = 0.0
    appearance_percent: float = 0.0


class AvoidanceMerge(TermMerge):
    strategy: Literal["intersection", "weighted", "none"] = "none"
    term_stats: dict[str, TermStats] = Field(default_factory=dict)


class AttributeMergers:
    """
    Reduces N weighted readings to one value per writing attribute, with attribution.

    Inputs must already be validated and normalized. Mergers never raise: when no source reports
    an attribute the module default is returned with empty attribution.
    """

    @staticmethod
    def _break_tie(tied: list[str], voters: dict[str, list[WeightedSource]]) -> str:
        for source_type in SOURCE_PRIORITY:
            for value in tied:
                if any(voter.source_type == source_type for voter in voters[value]):
                    return value
        return tied[0]

    @staticmethod
    def _vote(
        sources: list[WeightedSource], attribute: str, allowed: tuple[str, ...], default: str
    ) -> CategoricalMerge:
        tallies: dict[str, float] = {value: 0.0 for value in allowed}
        voters: dict[str, list[WeightedSource]] = defaultdict(list)

        for source in sources_carrying(sources, attribute):
            value = normalize_choice(getattr(source.reading.writing_style, attribute), allowed, default, attribute)
            tallies[value] += source.weight
            voters[value].append(source)

        if not voters:
            return CategoricalMerge(value=default)

        best = max(tallies[value] for value in voters)
        tied = [
            value
            for value in allowed
            if voters[value] and math.isclose(tallies[value], best, rel_tol=0.0, abs_tol=WEIGHT_TIE_TOLERANCE)
        ]
        winner = tied[0] if len(tied) == 1 else AttributeMergers._break_tie(tied, voters)
        if len(tied) > 1:
            logger.debug(f"{attribute} tie between {tied} resolved to '{winner}' by source priority")

        return CategoricalMerge(value=winner, sources=[contribution_of(voter) for voter in voters[winner]])

    @staticmethod
    def merge_tone(sources: list[WeightedSource]) -> CategoricalMerge:
        return AttributeMergers._vote(sources, "tone", TONE_VALUES, DEFAULT_TONE)

    @staticmethod
    def merge_sentence_length(sources: list[WeightedSource]) -> CategoricalMerge:
        return AttributeMergers._vote(sources, "sentence_length", SENTENCE_LENGTH_VALUES, DEFAULT_SENTENCE_LENGTH)

    @staticmethod
    def formality_from_score(score: float) -> str:
        if score < FORMALITY_CASUAL_BELOW:
            return "casual"
        if score <= FORMALITY_BALANCED_UP_TO:
            return "balanced"
        return "formal"

    @staticmethod
    def merge_formality(sources: list[WeightedSource]) -> FormalityMerge:
        """
        Weighted average on the casual=0 / balanced=1 / formal=2 scale.

        Every contributor is attributed, not just those matching the resulting bucket.
        """
        contributors = sources_carrying(sources, "formality")
        if not contributors:
            return FormalityMerge(value=DEFAULT_FORMALITY)

        levels = [
            normalize_choice(source.reading.writing_style.formality, FORMALITY_VALUES, DEFAULT_FORMALITY, "formality")
            for source in contributors
        ]
        scores = [FORMALITY_SCORES[level] for level in levels]
        total_weight = sum(source.weight for source in contributors)
        if total_weight > 0:
            average = sum(score * source.weight for score, source in zip(scores, contributors)) / total_weight
        else:
            average = sum(scores) / len(scores)

        return FormalityMerge(
            value=AttributeMergers.formality_from_score(average),
            sources=[contribution_of(source) for source in contributors],
            average_score=round(average, 2),
        )

    @staticmethod
    def merge_vocabulary(sources: list[WeightedSource]) -> TermMerge:
        """Weighted union: terms ranked by the summed weight of the sources listing them."""
        scores: dict[str, float] = {}
        contributors: dict[str, list[SourceContribution]] = defaultdict(list)

        for source in sources_carrying(sources, "vocabulary"):
            for term in normalize_terms(source.reading.writing_style.vocabulary):
                scores[term] = scores.get(term, 0.0) + source.weight
                contributors[term].append(contribution_of(source))

        if not scores:
            return TermMerge(value=list(DEFAULT_VOCABULARY))

        # sorted() is stable, so equal scores keep first-seen order
        selected = sorted(scores, key=lambda term: scores[term], reverse=True)[:MAX_VOCABULARY_TERMS]
        return TermMerge(
            value=selected,
            sources={term: contributors[term] for term in selected},
            term_scores={term: round(score, 4) for term, score in scores.items()},
        )

    @staticmethod
    def merge_avoidance(sources: list[WeightedSource]) -> AvoidanceMerge:
        """
        Weighted intersection with fallback.

        Terms listed by at least half of the sources win; failing that, terms whose summed weight
        exceeds 0.6; failing that, the "none" sentinel.
        """
        carrying = sources_carrying(sources, "avoidance")
        stats: dict[str, TermStats] = {}
        contributors: dict[str, list[SourceContribution]] = defaultdict(list)

        for source in carrying:
            for term in normalize_terms(source.reading.writing_style.avoidance):
                if term.lower() == AVOIDANCE_NONE:
                    continue
                entry = stats.setdefault(term, TermStats())
                entry.count += 1
                entry.weight += source.weight
                contributors[term].append(contribution_of(source))

        for entry in stats.values():
            entry.appearance_percent = entry.count / len(carrying) * 100

        strategy: Literal["intersection", "weighted", "none"] = "intersection"
        selected = [
            term for term, entry in stats.items() if entry.appearance_percent >= AVOIDANCE_MIN_APPEARANCE_PERCENT
        ]
        if not selected:
            strategy = "weighted"
            selected = [term for term, entry in stats.items() if entry.weight > AVOIDANCE_MIN_WEIGHT]
        if not selected:
            return AvoidanceMerge(value=list(DEFAULT_AVOIDANCE), strategy="none", term_stats=stats)

        selected.sort(key=lambda term: (stats[term].appearance_percent, stats[term].weight), reverse=True)
        selected = selected[:MAX_AVOIDANCE_TERMS]
        return AvoidanceMerge(
            value=selected,
            sources={term: contributors[term] for term in selected},
            term_scores={term: round(stats[term].weight, 4) for term in stats},
            strategy=strategy,
            term_stats=stats,
        )
