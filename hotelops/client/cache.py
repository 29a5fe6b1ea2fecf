# --- File: hotelops/client/cache.py ---
"""
Local query cache shared by the staff and guest views.

Keys are tuples whose first element names the resource family, e.g.
`("room", room_id)` or `("billing", reservation_id)`. Invalidation marks
entries stale by key prefix; the next `fetch` for a stale key reloads it.
"""

from typing import Any, Awaitable, Callable, Dict, Hashable, Iterator, Optional, Set, Tuple

from hotelops.core.logging import get_logger

logger = get_logger(__name__)

CacheKey = Tuple[Hashable, ...]

# Resource families touched by checkout
RESERVATION = "reservation"
ROOM = "room"
ROOM_STATUS = "room_status"
BILLING = "billing"
OVERVIEW = "overview"


class QueryCache:
    def __init__(self):
        self._entries: Dict[CacheKey, Any] = {}
        self._stale: Set[CacheKey] = set()

    def get(self, key: CacheKey, default: Any = None) -> Any:
        return self._entries.get(key, default)

    def set(self, key: CacheKey, value: Any) -> None:
        self._entries[key] = value
        self._stale.discard(key)

    def remove(self, key: CacheKey) -> None:
        self._entries.pop(key, None)
        self._stale.discard(key)

    def __contains__(self, key: CacheKey) -> bool:
        return key in self._entries

    def keys(self) -> Iterator[CacheKey]:
        return iter(list(self._entries))

    def is_stale(self, key: CacheKey) -> bool:
        return key in self._stale

    def invalidate(self, *prefix: Hashable) -> int:
        """Mark every entry whose key starts with `prefix` as stale."""
        matched = [key for key in self._entries if key[: len(prefix)] == prefix]
        self._stale.update(matched)
        if matched:
            logger.debug(f"Invalidated {len(matched)} cache entries for {prefix!r}")
        return len(matched)

    async def fetch(self, key: CacheKey, loader: Callable[[], Awaitable[Any]]) -> Any:
        """Return the cached value, loading it when missing or stale."""
        if key in self._entries and key not in self._stale:
            return self._entries[key]
        value = await loader()
        self.set(key, value)
        return value

    def snapshot(self) -> Dict[CacheKey, Any]:
        return dict(self._entries)

    def stale_keys(self) -> Set[CacheKey]:
        return set(self._stale)

    def clear(self) -> None:
        self._entries.clear()
        self._stale.clear()

    def status_of(self, key: CacheKey) -> Optional[str]:
        entry = self._entries.get(key)
        return entry.get("status") if isinstance(entry, dict) else None
