"""
In-process fixed window rate limiting for webhook deliveries, keyed by shop and topic
"""

import threading
import time
from typing import Callable, Dict

from minimall.domains.auth.rate_limiter import RateLimiter
from minimall.shared.constants import (
    DEFAULT_WEBHOOK_RATE_LIMIT,
    WEBHOOK_RATE_LIMITS,
    WEBHOOK_RATE_WINDOW_SECONDS,
)


def get_rate_limit_for_topic(topic: str) -> int:
    return WEBHOOK_RATE_LIMITS.get(topic, DEFAULT_WEBHOOK_RATE_LIMIT)


class WebhookRateLimiter:
    """One RateLimiter per distinct topic limit, sharing a window and clock"""

    def __init__(
        self,
        window_seconds: int = WEBHOOK_RATE_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.window_seconds = window_seconds
        self._clock = clock
        self._limiters: Dict[int, RateLimiter] = {}
        self._lock = threading.Lock()

    def _limiter_for(self, topic: str) -> RateLimiter:
        limit = get_rate_limit_for_topic(topic)
        with self._lock:
            limiter = self._limiters.get(limit)
            if limiter is None:
                limiter = RateLimiter(
                    max_attempts=limit, window_seconds=self.window_seconds, clock=self._clock
                )
                self._limiters[limit] = limiter
            return limiter

    def check(self, shop: str, topic: str) -> bool:
        """Count one delivery; False once the topic's limit is reached in this window"""
        return self._limiter_for(topic).is_allowed(f"{shop}:{topic}")

    def cleanup(self) -> int:
        """Drop windows that ended more than one window ago"""
        with self._lock:
            limiters = list(self._limiters.values())
        return sum(
            limiter.cleanup(grace_seconds=self.window_seconds) for limiter in limiters
        )

    def reset(self) -> None:
        with self._lock:
            for limiter in self._limiters.values():
                limiter.reset()


webhook_rate_limiter = WebhookRateLimiter()
