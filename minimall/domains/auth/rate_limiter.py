"""
Fixed window attempt limiter for the OAuth endpoints
"""

import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict


@dataclass
class RateLimitEntry:
    count: int
    reset_time: float


class RateLimiter:
    def __init__(
        self,
        max_attempts: int = 10,
        window_seconds: float = 60,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self._clock = clock
        self._store: Dict[str, RateLimitEntry] = {}
        self._lock = threading.Lock()

    def is_allowed(self, identifier: str) -> bool:
        now = self._clock()
        with self._lock:
            entry = self._store.get(identifier)
            if entry is None or now > entry.reset_time:
                self._store[identifier] = RateLimitEntry(1, now + self.window_seconds)
                return True

            if entry.count >= self.max_attempts:
                return False

            entry.count += 1
            return True

    def get_remaining_attempts(self, identifier: str) -> int:
        entry = self._store.get(identifier)
        if entry is None or self._clock() > entry.reset_time:
            return self.max_attempts
        return max(0, self.max_attempts - entry.count)

    def get_time_until_reset(self, identifier: str) -> float:
        """Seconds until the identifier's window resets, 0 if none is open"""
        entry = self._store.get(identifier)
        now = self._clock()
        if entry is None or now > entry.reset_time:
            return 0
        return entry.reset_time - now

    def cleanup(self, grace_seconds: float = 0) -> int:
        """Drop entries whose window ended more than `grace_seconds` ago"""
        now = self._clock()
        with self._lock:
            expired = [
                key
                for key, entry in self._store.items()
                if now > entry.reset_time + grace_seconds
            ]
            for key in expired:
                del self._store[key]
        return len(expired)

    def reset(self) -> None:
        with self._lock:
            self._store.clear()


auth_rate_limiter = RateLimiter(max_attempts=5, window_seconds=60)
install_rate_limiter = RateLimiter(max_attempts=10, window_seconds=300)
