"""Translation TTL cache, cache metrics, and in-flight request deduplication.

Both TranslationCache and RequestDeduplicator are built once per process and
handed to the TranslationService; nothing else touches their state. All
mutation happens on the event loop thread between awaits, so no locks.
"""
import asyncio
import json
import time
from collections import OrderedDict
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

from log import get_logger

logger = get_logger("mixlingo.cache")

T = TypeVar("T")

CACHE_TTL = 3600 * 24 * 30  # 30 days
CACHE_MAX = 20000
CACHE_SAVE_INTERVAL = 60


def translation_cache_key(text: str, from_lang: str, to_lang: str) -> str:
    return f"translation:{text}:{from_lang}:{to_lang}"


class CacheMetrics:
    """Hit/miss/set counters for a cache."""

    def __init__(self) -> None:
        self.reset()

    def reset(self) -> None:
        self.hits = 0
        self.misses = 0
        self.sets = 0
        self.started_at = time.time()

    def record_hit(self) -> None:
        self.hits += 1

    def record_miss(self) -> None:
        self.misses += 1

    def record_set(self) -> None:
        self.sets += 1

    def stats(self) -> dict:
        total = self.hits + self.misses
        return {
            "hits": self.hits,
            "misses": self.misses,
            "sets": self.sets,
            "total": total,
            "hit_rate": round(self.hits / total * 100, 2) if total else 0.0,
            "uptime_seconds": round(time.time() - self.started_at, 2),
        }


class TranslationCache:
    """LRU cache with per-entry TTL, optionally persisted to a JSON file."""

    def __init__(
        self,
        ttl: float = CACHE_TTL,
        max_entries: int = CACHE_MAX,
        path: Optional[Path] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.ttl = ttl
        self.max_entries = max_entries
        self.path = Path(path) if path else None
        self.metrics = CacheMetrics()
        self._clock = clock
        self._entries: OrderedDict = OrderedDict()  # key -> (timestamp, translation)
        self._dirty = False
        self._last_save = clock()

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> Optional[str]:
        entry = self._entries.get(key)
        if entry is None:
            self.metrics.record_miss()
            return None
        ts, value = entry
        if self._clock() - ts > self.ttl:
            self._entries.pop(key, None)
            self.metrics.record_miss()
            return None
        self._entries.move_to_end(key)
        self.metrics.record_hit()
        return value

    def put(self, key: str, value: str) -> None:
        self._entries[key] = (self._clock(), value)
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)
        self.metrics.record_set()
        self._dirty = True
        self.maybe_save()

    def clear(self) -> None:
        self._entries.clear()
        self._dirty = True

    def stats(self) -> dict:
        return {
            **self.metrics.stats(),
            "entries": len(self._entries),
            "max": self.max_entries,
            "ttl_hours": self.ttl / 3600,
        }

    def load(self) -> int:
        """Load unexpired entries from `path`. Returns how many were loaded."""
        if self.path is None or not self.path.exists():
            return 0
        loaded = 0
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            now = self._clock()
            for key, (ts, value) in data.items():
                if now - ts < self.ttl:
                    self._entries[key] = (ts, value)
                    loaded += 1
                if loaded >= self.max_entries:
                    break
            logger.info("Loaded cache from disk", extra={"component": "cache", "count": loaded})
        except (OSError, ValueError, TypeError):
            logger.exception("Failed to load cache file", extra={"component": "cache"})
        self._last_save = self._clock()
        return loaded

    def save(self) -> None:
        if self.path is None:
            return
        try:
            self.path.write_text(json.dumps(dict(self._entries), ensure_ascii=False), encoding="utf-8")
            self._dirty = False
            self._last_save = self._clock()
        except OSError:
            logger.exception("Failed to save cache", extra={"component": "cache"})

    def maybe_save(self) -> None:
        if self.path is not None and self._dirty and (self._clock() - self._last_save) >= CACHE_SAVE_INTERVAL:
            self.save()


class RequestDeduplicator:
    """Collapses concurrent calls for the same key onto one pending task.

    The registry entry for a key is removed inside the task itself, before it
    settles, so the next call after a success or failure always starts fresh.
    Callers await through asyncio.shield: a caller that gives up does not
    cancel work other callers (and the cache) are waiting on.
    """

    def __init__(self) -> None:
        self._in_flight: Dict[str, "asyncio.Future[Any]"] = {}
        self.unique = 0
        self.deduplicated = 0

    def __contains__(self, key: str) -> bool:
        return key in self._in_flight

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    async def _run(self, key: str, fn: Callable[[], Awaitable[T]]) -> T:
        try:
            return await fn()
        finally:
            self._in_flight.pop(key, None)

    async def dedupe(self, key: str, fn: Callable[[], Awaitable[T]]) -> T:
        task = self._in_flight.get(key)
        if task is not None:
            self.deduplicated += 1
            logger.debug("Request deduplicated", extra={"component": "dedupe", "key": key})
        else:
            self.unique += 1
            task = asyncio.ensure_future(self._run(key, fn))
            self._in_flight[key] = task
        return await asyncio.shield(task)

    def stats(self) -> dict:
        total = self.unique + self.deduplicated
        return {
            "unique": self.unique,
            "deduplicated": self.deduplicated,
            "in_flight": len(self._in_flight),
            "total_requests": total,
            "dedupe_rate": round(self.deduplicated / total * 100, 2) if total else 0.0,
        }
