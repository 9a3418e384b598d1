from cachetools import TTLCache
from loguru import logger

from digitalme.core.config import settings
from digitalme.core.security import redact_identifier


class RateLimiter:
    """
    Fixed-window request limiter keyed by caller.

    Each key's window opens on its first request and closes ``window_seconds`` later, when the
    cache entry expires.
    """

    def __init__(
        self,
        max_requests: int = settings.REFINE_RATE_LIMIT,
        window_seconds: int = settings.REFINE_RATE_WINDOW_SECONDS,
        max_keys: int = 10000,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        # Values are mutated in place so updates do not reset the entry's expiry
        self._windows: TTLCache = TTLCache(maxsize=max_keys, ttl=window_seconds)

    def hit(self, key: str) -> bool:
        """Record a request; False if the key has used up its window."""
        window = self._windows.get(key)
        if window is None:
            window = [0]
            self._windows[key] = window
        if window[0] >= self.max_requests:
            logger.warning(f"Rate limit reached for {redact_identifier(key)}")
            return False
        window[0] += 1
        return True

    def remaining(self, key: str) -> int:
        window = self._windows.get(key)
        used = window[0] if window else 0
        return max(0, self.max_requests - used)
