import re
import threading
import time
from collections.abc import Callable

from loguru import logger

from digitalme.core.config import settings

CODE_FENCE = "```"
INLINE_CODE_PATTERN = re.compile(r"`[^`]+`")


def contains_code(text: str) -> bool:
    return CODE_FENCE in text or INLINE_CODE_PATTERN.search(text) is not None


class MessageCollector:
    """
    Accumulates qualifying conversation messages between refinement cycles.

    State is idle (empty batch) or accumulating. ``add_message`` and ``get_batch`` share a lock so
    a message arriving while a batch is being handed off is never lost or sent twice.
    """

    def __init__(
        self,
        learning_enabled: bool = True,
        batch_size_threshold: int = settings.BATCH_SIZE_THRESHOLD,
        inactivity_threshold_seconds: float = settings.INACTIVITY_THRESHOLD_SECONDS,
        min_word_count: int = settings.MIN_MESSAGE_WORDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.batch_size_threshold = batch_size_threshold
        self.inactivity_threshold_seconds = inactivity_threshold_seconds
        self.min_word_count = min_word_count
        self._clock = clock
        self._lock = threading.Lock()
        self._learning_enabled = learning_enabled
        self._messages: list[str] = []
        self._last_message_at: float | None = None

    @property
    def learning_enabled(self) -> bool:
        return self._learning_enabled

    def is_quality_message(self, text: str) -> bool:
        """
        Whether a message is worth learning from.

        Code always counts; otherwise the message needs at least ``min_word_count`` words.
        """
        if not isinstance(text, str):
            return False
        trimmed = text.strip()
        if not trimmed:
            return False
        if contains_code(trimmed):
            return True
        return len(trimmed.split()) >= self.min_word_count

    def add_message(self, text: str) -> bool:
        """
        Queue a message if learning is on and it passes the quality filter.

        Returns:
            True if the message was queued
        """
        if not self._learning_enabled:
            return False
        if not self.is_quality_message(text):
            logger.debug("Message rejected by quality filter")
            return False

        with self._lock:
            # Learning may have been switched off while the filter ran
            if not self._learning_enabled:
                return False
            self._messages.append(text)
            self._last_message_at = self._clock()
            count = len(self._messages)
        logger.debug(f"Message queued for learning ({count} pending)")
        return True

    def time_since_last_message(self) -> float | None:
        if self._last_message_at is None:
            return None
        return self._clock() - self._last_message_at

    def should_send_batch(self) -> bool:
        """True once the batch is full, or when queued messages have sat idle long enough."""
        with self._lock:
            if not self._messages:
                return False
            if len(self._messages) >= self.batch_size_threshold:
                return True
            idle = self._clock() - self._last_message_at
            return idle >= self.inactivity_threshold_seconds

    def get_batch(self) -> list[str]:
        """Return the pending messages and clear them in one step."""
        with self._lock:
            batch = self._messages
            self._messages = []
            self._last_message_at = None
        if batch:
            logger.info(f"Dispatching batch of {len(batch)} messages")
        return batch

    def clear_batch(self) -> None:
        with self._lock:
            self._messages = []
            self._last_message_at = None

    def set_learning_enabled(self, enabled: bool) -> None:
        """
        Toggle learning.

        Disabling discards whatever is pending. Enabling with messages still queued restarts the
        inactivity window.
        """
        with self._lock:
            self._learning_enabled = enabled
            if not enabled:
                discarded = len(self._messages)
                self._messages = []
                self._last_message_at = None
            else:
                discarded = 0
                if self._messages:
                    self._last_message_at = self._clock()
        if discarded:
            logger.info(f"Learning disabled, discarded {discarded} pending messages")

    def stats(self) -> dict[str, int]:
        with self._lock:
            return {
                "messageCount": len(self._messages),
                "wordCount": sum(len(message.split()) for message in self._messages),
            }
