"""Bounded, expiring cache of the latest risk snapshot per portfolio."""

from collections import OrderedDict
from datetime import datetime, timedelta, timezone
from typing import Callable, Generic, Optional, Tuple, TypeVar

from ..config.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SnapshotCache(Generic[T]):
    """
    Latest value per key with a time-to-live and a maximum size.

    Entries older than the TTL are treated as missing. When the cache is
    full the least recently written or read entry is evicted.
    """

    def __init__(
        self,
        ttl_seconds: int = 300,
        max_entries: int = 1024,
        clock: Callable[[], datetime] = _utcnow,
    ):
        if ttl_seconds <= 0 or max_entries <= 0:
            raise ValueError("Cache TTL and size must be positive")
        self._ttl = timedelta(seconds=ttl_seconds)
        self._max_entries = max_entries
        self._clock = clock
        self._entries: "OrderedDict[str, Tuple[datetime, T]]" = OrderedDict()

    def get(self, key: str) -> Optional[T]:
        entry = self._entries.get(key)
        if entry is None:
            return None

        stored_at, value = entry
        if self._clock() - stored_at > self._ttl:
            del self._entries[key]
            return None

        self._entries.move_to_end(key)
        return value

    def put(self, key: str, value: T) -> None:
        self._entries[key] = (self._clock(), value)
        self._entries.move_to_end(key)
        while len(self._entries) > self._max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("Evicted cached snapshot", key=evicted)

    def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None
