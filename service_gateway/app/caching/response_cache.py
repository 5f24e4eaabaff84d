"""
In-process TTL cache for upstream responses.
"""

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, TYPE_CHECKING

from shared.logging import get_logger

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


KEY_SEPARATOR = "|"


def _escape_key_part(part: Any) -> str:
    return str(part).replace("%", "%25").replace(KEY_SEPARATOR, "%7C")


def make_cache_key(*parts: Any) -> str:
    """Join key components so that distinct component tuples never collide."""
    return KEY_SEPARATOR.join(_escape_key_part(part) for part in parts)


@dataclass(frozen=True)
class CacheEntry:
    """A stored response. Never mutated after it is written."""

    key: str
    value: Any
    stored_at: float


class ResponseCache:
    """Memoizes upstream responses for ``ttl_seconds``.

    ``lookup`` and ``store`` are synchronous; concurrent misses for the same
    key both reach the upstream and the last write wins.
    """

    def __init__(
        self,
        name: str,
        ttl_seconds: float = 120.0,
        *,
        clock: Callable[[], float] = time.monotonic,
        metrics: Optional["MetricsCollector"] = None,
    ):
        self.name = name
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self.metrics = metrics
        self.logger = get_logger("gateway.cache")
        self._entries: Dict[str, CacheEntry] = {}

    def lookup(self, key: str) -> Optional[Any]:
        """Return the cached payload for ``key``, or None on a miss."""
        entry = self._entries.get(key)
        if entry is None:
            self._record(hit=False)
            return None

        age = self.clock() - entry.stored_at
        if age > self.ttl_seconds:
            del self._entries[key]
            self.logger.debug("Cache entry expired", cache=self.name, key=key, age=round(age, 3))
            self._record(hit=False)
            return None

        self._record(hit=True)
        return entry.value

    def store(self, key: str, payload: Any) -> None:
        """Store ``payload`` under ``key``, replacing any previous entry."""
        self._entries[key] = CacheEntry(key=key, value=payload, stored_at=self.clock())

    def get_entry(self, key: str) -> Optional[CacheEntry]:
        return self._entries.get(key)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def _record(self, hit: bool) -> None:
        if self.metrics is None:
            return
        metric = "cache_hits_total" if hit else "cache_misses_total"
        self.metrics.increment_counter(metric, cache_type=self.name)
