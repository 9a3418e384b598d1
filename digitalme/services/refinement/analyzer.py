import json
import re

from loguru import logger
from pydantic import ValidationError

from digitalme.models.style import WritingStyle
from digitalme.services.gemini import GeminiService, gemini_service
from digitalme.services.refinement.constants import FALLBACK_VOCABULARY

JSON_OBJECT_PATTERN = re.compile(r"\{[\s\S]*\}")

STYLE_PROMPT = """
You are a writing style analyst.
Analyze the user's messages below and describe how they write.

Messages:
{messages}

Respond with JSON only, in exactly this shape:
{{
  "tone": "conversational" | "professional" | "neutral",
  "formality": "casual" | "balanced" | "formal",
  "sentenceLength": "short" | "medium" | "long",
  "vocabulary": [up to 4 words describing their word choice],
  "avoidance": [up to 3 things they avoid, or ["none"]]
}}
"""


def default_patterns() -> WritingStyle:
    return WritingStyle(vocabulary=list(FALLBACK_VOCABULARY))


class StylePatternAnalyzer:
    """Extracts writing style patterns from conversation text with Gemini."""

    def __init__(self, gemini: GeminiService | None = None):
        self.gemini = gemini or gemini_service

    @staticmethod
    def build_prompt(messages: list[str]) -> str:
        return STYLE_PROMPT.format(messages="\n\n".join(messages))

    @staticmethod
    def parse_patterns(raw: str) -> WritingStyle:
        """
        Pull the JSON object out of a model reply and normalize it.

        Anything unusable yields the default patterns.
        """
        match = JSON_OBJECT_PATTERN.search(raw or "")
        if not match:
            logger.warning("No JSON object in style analysis reply, using default patterns")
            return default_patterns()
        try:
            data = json.loads(match.group(0))
            if not isinstance(data, dict):
                raise ValueError("style analysis reply is not an object")
            if not data.get("vocabulary"):
                data["vocabulary"] = list(FALLBACK_VOCABULARY)
            return WritingStyle.model_validate(data)
        except (ValueError, ValidationError) as e:
            logger.warning(f"Failed to parse style analysis reply: {e}")
            return default_patterns()

    async def analyze(self, messages: list[str]) -> WritingStyle:
        if not self.gemini.available:
            return default_patterns()
        raw = await self.gemini.generate_content_async(self.build_prompt(messages))
        patterns = self.parse_patterns(raw)
        logger.debug(f"Extracted patterns: {patterns.model_dump(by_alias=True)}")
        return patterns
