from datetime import datetime, timezone

from loguru import logger

from digitalme.core.constants import CONFIDENCE_CEILING, MAX_AVOIDANCE_TERMS, MAX_VOCABULARY_TERMS, WRITING_ATTRIBUTES
from digitalme.models.profile import AttributeConfidence, StyleProfile, migrate_profile
from digitalme.models.refinement import DeltaChange, DeltaReport
from digitalme.models.style import CodingStyle, WritingStyle
from digitalme.services.profile.mergers import contribution_percent
from digitalme.services.refinement.constants import (
    ADJUSTMENT_HIGH_CONFIDENCE,
    ADJUSTMENT_LOW_CONFIDENCE,
    ADJUSTMENT_MEDIUM_CONFIDENCE,
    CHANGE_THRESHOLD,
    CHANGE_THRESHOLD_HIGH_CONFIDENCE,
    CONFIDENCE_GROWTH,
    FULL_EVIDENCE_WORDS,
    HIGH_CONFIDENCE,
    MEDIUM_CONFIDENCE,
)

# Wire names used in delta reports
ATTRIBUTE_LABELS = {
    "tone": "tone",
    "formality": "formality",
    "sentence_length": "sentenceLength",
    "vocabulary": "vocabulary",
    "avoidance": "avoidance",
}
TERM_LIMITS = {"vocabulary": MAX_VOCABULARY_TERMS, "avoidance": MAX_AVOIDANCE_TERMS}


class RefinementMerger:
    """
    Folds conversation patterns into an existing profile.

    The more confident an attribute already is, the less a single refinement can move it. Thin
    conversations (under 500 words) move it proportionally less.
    """

    @staticmethod
    def word_factor(word_count: int) -> float:
        return min(1.0, max(0, word_count) / FULL_EVIDENCE_WORDS)

    @staticmethod
    def max_adjustment(confidence: float) -> float:
        if confidence >= HIGH_CONFIDENCE:
            return ADJUSTMENT_HIGH_CONFIDENCE
        if confidence >= MEDIUM_CONFIDENCE:
            return ADJUSTMENT_MEDIUM_CONFIDENCE
        return ADJUSTMENT_LOW_CONFIDENCE

    @staticmethod
    def change_threshold(confidence: float) -> float:
        return CHANGE_THRESHOLD_HIGH_CONFIDENCE if confidence >= HIGH_CONFIDENCE else CHANGE_THRESHOLD

    @staticmethod
    def merge_categorical(current: str, observed: str, confidence: float, word_factor: float) -> str:
        if observed == current:
            return current
        adjustment = RefinementMerger.max_adjustment(confidence) * word_factor
        if adjustment >= RefinementMerger.change_threshold(confidence):
            return observed
        return current

    @staticmethod
    def merge_terms(current: list[str], observed: list[str], weight: float, limit: int) -> list[str]:
        """
        Blend term lists, keeping the current list's length.

        Existing terms score ``1 - weight``, observed ones ``weight``; a term in both gets both.
        """
        scores: dict[str, float] = {}
        for term in current:
            scores[term] = scores.get(term, 0.0) + (1 - weight)
        for term in observed:
            scores[term] = scores.get(term, 0.0) + weight
        size = min(len(current), limit)
        return sorted(scores, key=lambda term: scores[term], reverse=True)[:size]

    @staticmethod
    def update_confidence(confidence: float, word_factor: float) -> float:
        return min(CONFIDENCE_CEILING, confidence + CONFIDENCE_GROWTH * word_factor * (1 - confidence))

    @staticmethod
    def merge_patterns(profile: StyleProfile, patterns: WritingStyle, word_count: int) -> StyleProfile:
        """
        Produce the next version of ``profile`` with conversation patterns folded in.

        Args:
            profile: The current profile (left untouched)
            patterns: Patterns observed in the conversation
            word_count: Words of conversation the patterns came from

        Returns:
            New StyleProfile with version incremented
        """
        profile = migrate_profile(profile)
        confidences = profile.attribute_confidence
        word_factor = RefinementMerger.word_factor(word_count)
        current = profile.writing

        merged: dict[str, object] = {}
        for attribute in ("tone", "formality", "sentence_length"):
            merged[attribute] = RefinementMerger.merge_categorical(
                getattr(current, attribute), getattr(patterns, attribute), getattr(confidences, attribute), word_factor
            )
        for attribute, limit in TERM_LIMITS.items():
            weight = RefinementMerger.max_adjustment(getattr(confidences, attribute)) * word_factor
            merged[attribute] = RefinementMerger.merge_terms(
                getattr(current, attribute), getattr(patterns, attribute), weight, limit
            )

        updated_confidences = AttributeConfidence(
            **{
                attribute: RefinementMerger.update_confidence(getattr(confidences, attribute), word_factor)
                for attribute in WRITING_ATTRIBUTES
            }
        )
        metadata = profile.learning_metadata.model_copy(
            update={
                "last_refinement": datetime.now(timezone.utc),
                "total_refinements": profile.learning_metadata.total_refinements + 1,
                "words_from_conversations": profile.learning_metadata.words_from_conversations + word_count,
            }
        )
        sample_count = profile.sample_count.model_copy(
            update={"conversation_words": profile.sample_count.conversation_words + word_count}
        )

        return profile.next_version(
            writing=WritingStyle(**merged),
            coding=profile.coding or CodingStyle(),
            attribute_confidence=updated_confidences,
            confidence=round(updated_confidences.mean(), 2),
            sample_count=sample_count,
            learning_metadata=metadata,
        )

    @staticmethod
    def generate_delta_report(old: StyleProfile, new: StyleProfile, word_count: int) -> DeltaReport:
        changes: list[DeltaChange] = []
        for attribute, label in ATTRIBUTE_LABELS.items():
            before = getattr(old.writing, attribute)
            after = getattr(new.writing, attribute)
            if before == after:
                continue
            if isinstance(after, list):
                added = [term for term in after if term not in before]
                percent = contribution_percent(len(added) / len(after)) if after else 0
                # A reordering of the same terms is not a change
                if percent == 0:
                    continue
                changes.append(
                    DeltaChange(
                        attribute=label, old_value=", ".join(before), new_value=", ".join(after), change_percent=percent
                    )
                )
            else:
                changes.append(DeltaChange(attribute=label, old_value=before, new_value=after, change_percent=100))

        report = DeltaReport(
            changes=changes,
            words_analyzed=word_count,
            confidence_change=round(new.confidence - old.confidence, 2),
        )
        logger.debug(f"Delta report: {len(changes)} changes, confidence change {report.confidence_change}")
        return report
