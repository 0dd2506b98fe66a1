import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from normalize import normalize_team_name

logger = logging.getLogger("cache")


@dataclass
class CacheEntry:
    value: Any
    ttl: float
    created_at: float

    def expired(self, now: float) -> bool:
        return now >= self.created_at + self.ttl


def match_key(team: str, opponent: Optional[str], match_date: Optional[str]) -> str:
    return "match:{}|{}|{}".format(
        normalize_team_name(team), normalize_team_name(opponent) or "unknown", match_date or "any"
    )


def team_key(source: str, name: str) -> str:
    return f"team:{source}:{normalize_team_name(name)}"


class CacheStore:
    """Bounded in-memory TTL cache with least-recently-used eviction.

    Safe to share between concurrent resolutions; a key written twice keeps
    the last value.
    """

    def __init__(self, max_entries: int = 1000, default_ttl_seconds: float = 3600.0, enabled: bool = True,
                 clock: Callable[[], float] = time.monotonic):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self.default_ttl_seconds = default_ttl_seconds
        self.enabled = enabled
        self._clock = clock
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._sets = 0
        self._evictions = 0

    def get(self, key: str) -> Optional[Any]:
        if not self.enabled:
            return None
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None
            if entry.expired(self._clock()):
                del self._entries[key]
                self._misses += 1
                return None
            self._entries.move_to_end(key)
            self._hits += 1
        logger.debug(f"Cache HIT: {key}")
        return entry.value

    def set(self, key: str, value: Any, ttl_seconds: Optional[float] = None) -> None:
        if not self.enabled:
            return
        ttl = self.default_ttl_seconds if ttl_seconds is None else ttl_seconds
        with self._lock:
            now = self._clock()
            if key not in self._entries and len(self._entries) >= self.max_entries:
                self._purge_expired_locked(now)
                while len(self._entries) >= self.max_entries:
                    evicted, _ = self._entries.popitem(last=False)
                    self._evictions += 1
                    logger.debug(f"Cache LRU evicted: {evicted}")
            self._entries[key] = CacheEntry(value=value, ttl=ttl, created_at=now)
            self._entries.move_to_end(key)
            self._sets += 1
        logger.debug(f"Cache SET: {key} (TTL: {ttl:.0f}s)")

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def purge_expired(self) -> int:
        with self._lock:
            removed = self._purge_expired_locked(self._clock())
        if removed:
            logger.info(f"Cache cleanup: removed {removed} expired entries")
        return removed

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            lookups = self._hits + self._misses
            return {
                "enabled": self.enabled,
                "size": len(self._entries),
                "max_entries": self.max_entries,
                "hits": self._hits,
                "misses": self._misses,
                "sets": self._sets,
                "evictions": self._evictions,
                "hit_rate": f"{(self._hits / lookups * 100) if lookups else 0:.1f}%",
            }

    def _purge_expired_locked(self, now: float) -> int:
        expired = [k for k, e in self._entries.items() if e.expired(now)]
        for k in expired:
            del self._entries[k]
        return len(expired)
