from loguru import logger

from digitalme.core.security import redact_identifier
from digitalme.models.profile import StyleProfile
from digitalme.models.refinement import DeltaReport
from digitalme.services.refinement.analyzer import StylePatternAnalyzer
from digitalme.services.refinement.merge import RefinementMerger


class ProfileRefinerService:
    """Server side of refinement: analyze the conversation, fold it into the profile, report the delta."""

    def __init__(self, analyzer: StylePatternAnalyzer | None = None):
        self.analyzer = analyzer or StylePatternAnalyzer()
        self.merger = RefinementMerger()

    async def refine_profile(self, profile: StyleProfile, messages: list[str]) -> tuple[StyleProfile, DeltaReport]:
        combined = "\n\n".join(messages)
        word_count = len(combined.split())
        logger.info(
            f"[{redact_identifier(profile.user_id)}] Refining v{profile.version} from "
            f"{len(messages)} messages ({word_count} words)"
        )

        patterns = await self.analyzer.analyze(messages)
        updated = self.merger.merge_patterns(profile, patterns, word_count)
        delta = self.merger.generate_delta_report(profile, updated, word_count)
        return updated, delta


refiner_service = ProfileRefinerService()
