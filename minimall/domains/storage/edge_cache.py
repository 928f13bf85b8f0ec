"""
In-process TTL cache for public config responses
"""

import re
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional


@dataclass
class CacheEntry:
    data: Any
    expires_at: float
    tags: List[str] = field(default_factory=list)

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at


class EdgeCache:
    """Tag-aware TTL cache. Entries are local to this process."""

    def __init__(self, clock=time.monotonic):
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def set(
        self, key: str, data: Any, ttl: float, tags: Optional[Iterable[str]] = None
    ) -> None:
        with self._lock:
            self._entries[key] = CacheEntry(
                data=data, expires_at=self._clock() + ttl, tags=list(tags or [])
            )

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.is_expired(self._clock()):
                del self._entries[key]
                return None
            return entry.data

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def invalidate_by_tags(self, tags: Iterable[str]) -> int:
        wanted = set(tags)
        with self._lock:
            keys = [k for k, e in self._entries.items() if wanted.intersection(e.tags)]
            for key in keys:
                del self._entries[key]
        return len(keys)

    def invalidate_by_pattern(self, pattern: str) -> int:
        regex = re.compile(pattern)
        with self._lock:
            keys = [k for k in self._entries if regex.search(k)]
            for key in keys:
                del self._entries[key]
        return len(keys)

    def get_stats(self) -> Dict[str, Any]:
        now = self._clock()
        with self._lock:
            total = len(self._entries)
            expired = sum(1 for e in self._entries.values() if e.is_expired(now))
        valid = total - expired
        return {
            "total": total,
            "valid": valid,
            "expired": expired,
            "hitRate": valid / total if total else 0,
        }

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def cleanup(self) -> int:
        """Drop expired entries and return how many were removed"""
        now = self._clock()
        with self._lock:
            keys = [k for k, e in self._entries.items() if e.is_expired(now)]
            for key in keys:
                del self._entries[key]
        return len(keys)


edge_cache = EdgeCache()


def get_edge_cache() -> EdgeCache:
    return edge_cache
