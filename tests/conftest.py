"""Shared fixtures for the DigitalMe test suite."""

from typing import Any

import pytest

from digitalme.models.profile import StyleProfile
from digitalme.models.style import CodingStyle, ReadingStyle, SourceMetrics, SourceReading
from digitalme.services.profile.builder import ProfileBuilder
from digitalme.services.profile_store import ProfileStore

WORD_FIELDS = {"gmail": "email_words", "blog": "total_words"}


class FakeKeyValueStore:
    """In-memory stand-in for RedisService with the same async surface."""

    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.fail_writes = False
        self.writes = 0

    async def get(self, key: str) -> str | None:
        return self.data.get(key)

    async def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        if self.fail_writes:
            return False
        self.writes += 1
        self.data[key] = str(value)
        return True

    async def delete(self, key: str) -> bool:
        return self.data.pop(key, None) is not None


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def kv_store() -> FakeKeyValueStore:
    return FakeKeyValueStore()


@pytest.fixture
def store(kv_store: FakeKeyValueStore) -> ProfileStore:
    return ProfileStore(kv_store)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_reading():
    """Factory for readings with a complete writing style unless told otherwise."""

    def _make(
        source_type: str,
        words: int | None = None,
        with_style: bool = True,
        metrics: dict[str, int] | None = None,
        coding: CodingStyle | None = None,
        **style: Any,
    ) -> SourceReading:
        fields = {
            "tone": "neutral",
            "formality": "balanced",
            "sentence_length": "medium",
            "vocabulary": ["clear"],
            "avoidance": ["none"],
        }
        fields.update(style)
        counts = dict(metrics or {})
        if words is not None:
            counts[WORD_FIELDS.get(source_type, "word_count")] = words
        return SourceReading(
            source_type=source_type,
            writing_style=ReadingStyle(**fields) if with_style else None,
            metrics=SourceMetrics(**counts),
            coding_style=coding,
        )

    return _make


@pytest.fixture
def builder() -> ProfileBuilder:
    return ProfileBuilder()


@pytest.fixture
def profile(builder: ProfileBuilder, make_reading) -> StyleProfile:
    """A version 1 profile built from a single email source."""
    return builder.build_profile(
        [
            make_reading(
                "gmail",
                words=1200,
                tone="conversational",
                vocabulary=["clear", "direct", "concise", "relatable"],
            )
        ],
        "user-123456",
    )
