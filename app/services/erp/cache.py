"""Time-boxed in-memory cache for derived ERP collections."""

import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

Refresh = Callable[[], Awaitable[Optional[List[Any]]]]


@dataclass
class CacheEntry:
    data: List[Any]
    timestamp: float
    ttl_seconds: float


class CollectionCache:
    """Keyed TTL cache that prefers stale data over failure.

    A failed or empty refresh never evicts what is already cached: listing
    endpoints get the previous data if there is any, otherwise an empty list.
    Concurrent refreshes of one key are not coordinated; the last write wins.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}

    async def get_or_refresh(self, key: str, ttl_seconds: float, refresh: Refresh) -> List[Any]:
        entry = self._entries.get(key)
        now = self._clock()
        if entry and (now - entry.timestamp) < ttl_seconds:
            logger.debug(f"Using cached {key} ({len(entry.data)} items)")
            return entry.data

        try:
            data = await refresh()
        except Exception as e:
            logger.error(f"Refreshing {key} failed: {e}")
            return self._fallback(key, entry)

        if not data:
            logger.warning(f"Refreshing {key} returned no data")
            return self._fallback(key, entry)

        self._entries[key] = CacheEntry(data=list(data), timestamp=self._clock(), ttl_seconds=ttl_seconds)
        logger.info(f"Cached {len(data)} items for {key}")
        return self._entries[key].data

    def _fallback(self, key: str, entry: Optional[CacheEntry]) -> List[Any]:
        if entry:
            logger.warning(f"Serving stale {key} ({len(entry.data)} items)")
            return entry.data
        return []

    def peek(self, key: str) -> Optional[List[Any]]:
        entry = self._entries.get(key)
        return entry.data if entry else None

    def invalidate(self, key: Optional[str] = None) -> None:
        if key is None:
            self._entries.clear()
            logger.info("Cleared all cached collections")
            return
        if self._entries.pop(key, None) is not None:
            logger.info(f"Cleared cache for key: {key}")

    def keys(self, prefix: str = "") -> List[str]:
        return [key for key in self._entries if key.startswith(prefix)]

    def invalidate_prefix(self, prefix: str) -> None:
        for key in [k for k in self._entries if k.startswith(prefix)]:
            del self._entries[key]
        logger.info(f"Cleared cached collections matching {prefix}*")

    def stats(self) -> List[Dict[str, Any]]:
        now = self._clock()
        return [
            {
                "key": key,
                "item_count": len(entry.data),
                "age_seconds": round(now - entry.timestamp, 3),
                "ttl_seconds": entry.ttl_seconds,
                "is_fresh": (now - entry.timestamp) < entry.ttl_seconds,
            }
            for key, entry in self._entries.items()
        ]
