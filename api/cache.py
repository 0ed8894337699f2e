"""
Time-boxed in-memory cache for the proxied sheet CSV.
"""
import time
from dataclasses import dataclass
from typing import Callable, Optional


@dataclass(frozen=True)
class CacheEntry:
    csv_text: str
    source: str
    created_at: float


class CsvCache:
    """Holds one CSV payload and the tier that produced it until the TTL runs out."""

    def __init__(self, ttl_seconds: float = 1800, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._entry: Optional[CacheEntry] = None

    def is_expired(self) -> bool:
        if self._entry is None:
            return True
        return self.clock() - self._entry.created_at >= self.ttl_seconds

    def get(self) -> Optional[CacheEntry]:
        """The cached entry, or None when empty or expired."""
        if self.is_expired():
            return None
        return self._entry

    def set(self, csv_text: str, source: str) -> CacheEntry:
        self._entry = CacheEntry(csv_text=csv_text, source=source, created_at=self.clock())
        return self._entry

    def clear(self) -> None:
        self._entry = None
