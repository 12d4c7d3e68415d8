"""In-memory TTL cache shared by the directory layer and the orchestrator.

Entries are plain ``(data, expires_at)`` pairs stored in insertion order.
When the cache is full the oldest-inserted entry is evicted; reads do not
refresh an entry's position, so this is bounded FIFO rather than true LRU.

Expired entries are dropped lazily on ``get`` and in bulk by ``sweep``, which
``run_sweeper`` calls periodically so keys that are never read again do not
linger.

Key helpers build namespaced keys (``search:``, ``browse:``, ``nonprofit:``,
``recommendation:``); the namespace selects the default TTL on ``set``.
"""

import asyncio
import hashlib
import json
import logging
import threading
import time
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from ..models import CacheStats

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Tunables
# ---------------------------------------------------------------------------

DEFAULT_MAX_ENTRIES = 1000
DEFAULT_SWEEP_INTERVAL = 5 * 60  # seconds

DEFAULT_TTLS: dict[str, float] = {
    "search": 6 * 60 * 60,
    "browse": 6 * 60 * 60,
    "nonprofit": 24 * 60 * 60,
    "recommendation": 60 * 60,
}
# Keys without a known namespace get the search TTL.
FALLBACK_NAMESPACE = "search"

DEFAULT_TAKE = 50
# Only the head of the article text feeds the recommendation key.
ARTICLE_TEXT_KEY_CHARS = 500


# ---------------------------------------------------------------------------
# Key helpers
# ---------------------------------------------------------------------------

def hash_string(value: str) -> str:
    """Short, stable content hash of *value*."""
    return hashlib.sha256(value.encode("utf-8")).hexdigest()[:16]


def hash_list(values: Iterable[str]) -> str:
    """Order-insensitive hash of a list of strings (the input is not mutated)."""
    return hash_string(json.dumps(sorted(values)))


def hash_mapping(value: Mapping[str, Any]) -> str:
    """Hash a mapping, ignoring key order and ``None`` values."""
    cleaned = {k: v for k, v in value.items() if v is not None}
    return hash_string(json.dumps(cleaned, sort_keys=True, default=str))


def search_key(term: str, causes: list[str] | None = None, take: int | None = None) -> str:
    causes_hash = hash_list(causes) if causes else "none"
    return f"search:{term.strip()}:{causes_hash}:{take or DEFAULT_TAKE}"


def browse_key(cause: str, page: int | None = None, take: int | None = None) -> str:
    return f"browse:{cause}:{page or 1}:{take or DEFAULT_TAKE}"


def nonprofit_key(identifier: str) -> str:
    return f"nonprofit:{identifier}"


def recommendation_key(
    article_text: str,
    geography: Mapping[str, Any],
    causes: list[str],
) -> str:
    text_hash = hash_string(article_text[:ARTICLE_TEXT_KEY_CHARS])
    return f"recommendation:{text_hash}:{hash_mapping(geography)}:{hash_list(causes)}"


# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------

@dataclass
class CacheEntry:
    data: Any
    expires_at: float


class TTLCache:
    """Bounded, thread-safe key/value store with per-namespace TTLs.

    ``clock`` returns the current time in seconds; tests inject a fake one.
    """

    def __init__(
        self,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        ttls: Mapping[str, float] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self.ttls = {**DEFAULT_TTLS, **(ttls or {})}
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def default_ttl(self, key: str) -> float:
        namespace = key.split(":", 1)[0]
        return self.ttls.get(namespace, self.ttls[FALLBACK_NAMESPACE])

    def get(self, key: str) -> Any | None:
        """Return the cached value, or ``None`` when absent or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None
            if self._clock() > entry.expires_at:
                del self._entries[key]
                self._misses += 1
                return None
            self._hits += 1
            return entry.data

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Store *value* under *key* for *ttl* seconds (namespace default if omitted)."""
        if ttl is None:
            ttl = self.default_ttl(key)
        with self._lock:
            if key not in self._entries and len(self._entries) >= self.max_entries:
                oldest = next(iter(self._entries))
                del self._entries[oldest]
            self._entries[key] = CacheEntry(data=value, expires_at=self._clock() + ttl)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        """Drop every entry and reset the hit/miss counters."""
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def stats(self) -> CacheStats:
        with self._lock:
            total = self._hits + self._misses
            return CacheStats(
                hits=self._hits,
                misses=self._misses,
                size=len(self._entries),
                hit_rate=(self._hits / total) * 100 if total else 0.0,
            )

    def sweep(self) -> int:
        """Remove every expired entry; returns how many were removed."""
        with self._lock:
            now = self._clock()
            expired = [k for k, e in self._entries.items() if now > e.expires_at]
            for k in expired:
                del self._entries[k]
        if expired:
            logger.info("Cache sweep removed %d expired entries", len(expired))
        return len(expired)

    async def run_sweeper(self, interval: float = DEFAULT_SWEEP_INTERVAL) -> None:
        """Sweep forever every *interval* seconds; cancel the task to stop."""
        while True:
            await asyncio.sleep(interval)
            self.sweep()
