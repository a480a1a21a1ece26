"""Arrest Map Backend — In-memory cache with TTL"""

import time
import logging
from typing import Any, Optional

logger = logging.getLogger("arrestmap.cache")


class TTLCache:
    """In-memory cache with per-key TTL and a size cap (earliest expiry evicted first)."""

    def __init__(self, default_ttl: Optional[float] = 3600, max_size: int = 500):
        self._store: dict[str, tuple[Any, float]] = {}
        self._default_ttl = default_ttl
        self._max_size = max_size

    def _expiry(self, ttl: Optional[float]) -> float:
        ttl = ttl if ttl is not None else self._default_ttl
        return float("inf") if ttl is None else time.monotonic() + ttl

    def get(self, key: str) -> Optional[Any]:
        entry = self._store.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if time.monotonic() > expires_at:
            del self._store[key]
            return None
        return value

    def set(self, key: str, value: Any, ttl: Optional[float] = None):
        if len(self._store) >= self._max_size and key not in self._store:
            self.evict_expired()
            while len(self._store) >= self._max_size:
                oldest_key = min(self._store, key=lambda k: self._store[k][1])
                del self._store[oldest_key]
        self._store[key] = (value, self._expiry(ttl))

    def delete(self, key: str):
        self._store.pop(key, None)

    def clear(self):
        self._store.clear()

    def evict_expired(self):
        now = time.monotonic()
        expired = [k for k, (_, exp) in self._store.items() if now > exp]
        for k in expired:
            del self._store[k]
        if expired:
            logger.debug(f"Evicted {len(expired)} expired cache entries")

    def __len__(self) -> int:
        return len(self._store)


# Shared caches
token_cache = TTLCache(default_ttl=300, max_size=200)   # 5 min, ID token -> user
geo_cache = TTLCache(default_ttl=None, max_size=4)      # process lifetime, boundary data
