import asyncio

from google import genai
from google.genai import types
from loguru import logger

from digitalme.core.config import settings

# Low temperature keeps repeated analyses of the same text stable
ANALYSIS_TEMPERATURE = 0.2


class GeminiService:
    """Gemini access for style analysis. An empty reply means "no analysis available"."""

    def __init__(self, model: str = settings.DEFAULT_GEMINI_MODEL, api_key: str | None = settings.GEMINI_API_KEY):
        self.model = model
        self.client: genai.Client | None = None
        if not api_key:
            logger.warning("GEMINI_API_KEY not set; conversation analysis falls back to default patterns")
            return
        try:
            self.client = genai.Client(api_key=api_key)
        except Exception as e:
            logger.warning(f"Gemini client unavailable: {e}")

    @property
    def available(self) -> bool:
        return self.client is not None

    def generate_content(self, prompt: str, json_reply: bool = True) -> str:
        if self.client is None:
            return ""
        config = types.GenerateContentConfig(
            temperature=ANALYSIS_TEMPERATURE,
            response_mime_type="application/json" if json_reply else "text/plain",
        )
        try:
            response = self.client.models.generate_content(model=self.model, contents=prompt, config=config)
        except Exception as e:
            logger.exception(f"Gemini generation failed ({self.model}): {e}")
            return ""
        return (response.text or "").strip()

    async def generate_content_async(self, prompt: str, json_reply: bool = True) -> str:
        """Run the blocking SDK call in the default executor."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, lambda: self.generate_content(prompt, json_reply))


gemini_service = GeminiService()
