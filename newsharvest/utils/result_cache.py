from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from ..models import Record, SourceOutcome

CacheKey = Tuple[str, str]


@dataclass(slots=True)
class CacheEntry:
    records: Tuple[Record, ...]
    outcomes: Tuple[SourceOutcome, ...]
    stored_at: float
    expires_at: float


class ResultCache:
    """In-memory TTL cache of category results keyed by ``(category, query)``.

    Entries live only as long as the owning scraper. A lock guards the dict
    because category tasks read and write it from worker threads.
    """

    def __init__(self, ttl_seconds: float, *, clock=time.monotonic) -> None:
        self.ttl = ttl_seconds
        self._clock = clock
        self._entries: Dict[CacheKey, CacheEntry] = {}
        self._lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return self.ttl > 0

    @staticmethod
    def key(category: str, query: Optional[str]) -> CacheKey:
        return category, (query or "").strip().lower()

    def get(self, category: str, query: Optional[str]) -> Optional[CacheEntry]:
        if not self.enabled:
            return None
        k = self.key(category, query)
        with self._lock:
            entry = self._entries.get(k)
            if entry is None:
                return None
            if self._clock() >= entry.expires_at:
                del self._entries[k]
                return None
            return entry

    def put(self, category: str, query: Optional[str], records: List[Record], outcomes: List[SourceOutcome]) -> None:
        if not self.enabled:
            return
        now = self._clock()
        with self._lock:
            self._entries[self.key(category, query)] = CacheEntry(
                records=tuple(records),
                outcomes=tuple(o.copy() for o in outcomes),
                stored_at=now,
                expires_at=now + self.ttl,
            )

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def status(self) -> List[dict]:
        now = self._clock()
        with self._lock:
            return [
                {
                    "category": category,
                    "query": query or None,
                    "items": len(entry.records),
                    "expires_in": round(max(0.0, entry.expires_at - now), 1),
                }
                for (category, query), entry in self._entries.items()
                if now < entry.expires_at
            ]
