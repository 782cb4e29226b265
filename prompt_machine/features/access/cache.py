"""
Access decision cache.

In-memory, keyed by (subject, project_id, field_id). Field ids are only unique
within a project, and the anonymous subject is keyed as None so it can never
share entries with a user id. Entries expire lazily once older than the
TTL; when an insertion would push the map past its capacity, every expired
entry is swept. There is no LRU eviction and no background thread.

The cache only changes the cost of a decision, never its outcome.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Protocol, Tuple

from prompt_machine.core.metrics import access_cache_entries, access_cache_evictions_total
from prompt_machine.models.access import AccessDecision

logger = logging.getLogger("prompt_machine")

CacheKey = Tuple[Optional[str], str, str]

DEFAULT_TTL_SECONDS = 5 * 60
DEFAULT_MAX_ENTRIES = 1000


class AccessCache(Protocol):
    def get(self, key: CacheKey) -> Optional[AccessDecision]: ...

    def put(self, key: CacheKey, decision: AccessDecision) -> None: ...

    def invalidate(
        self,
        subject_id: Optional[str] = None,
        field_id: Optional[str] = None,
        project_id: Optional[str] = None,
    ) -> int: ...


@dataclass(frozen=True)
class CacheEntry:
    decision: AccessDecision
    written_at: float


class AccessDecisionCache:
    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        time_fn: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = max(0.0, float(ttl_seconds))
        self.max_entries = max(1, int(max_entries))
        self.time_fn = time_fn
        self._entries: Dict[CacheKey, CacheEntry] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _is_stale(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.written_at > self.ttl_seconds

    def get(self, key: CacheKey) -> Optional[AccessDecision]:
        now = self.time_fn()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._is_stale(entry, now):
                del self._entries[key]
                return None
            return entry.decision

    def put(self, key: CacheKey, decision: AccessDecision) -> None:
        now = self.time_fn()
        with self._lock:
            if key not in self._entries and len(self._entries) >= self.max_entries:
                self._sweep(now)
            self._entries[key] = CacheEntry(decision=decision, written_at=now)
            access_cache_entries.set(len(self._entries))

    def _sweep(self, now: float) -> int:
        stale = [k for k, entry in self._entries.items() if self._is_stale(entry, now)]
        for k in stale:
            del self._entries[k]
        if stale:
            access_cache_evictions_total.inc(amount=len(stale))
        logger.debug(
            "access_cache.sweep",
            extra={"evicted": len(stale), "remaining": len(self._entries)},
        )
        return len(stale)

    def invalidate(
        self,
        subject_id: Optional[str] = None,
        field_id: Optional[str] = None,
        project_id: Optional[str] = None,
    ) -> int:
        """Drop cached decisions matching every given criterion.

        No arguments clears everything; subject only clears that user;
        field only clears that field for every subject; project only clears
        every field of a project (used when its definition is replaced).
        Returns the number of entries removed.
        """
        with self._lock:
            if subject_id is None and field_id is None and project_id is None:
                removed = len(self._entries)
                self._entries.clear()
            else:
                doomed = [
                    k for k in self._entries
                    if (subject_id is None or k[0] == subject_id)
                    and (project_id is None or k[1] == project_id)
                    and (field_id is None or k[2] == field_id)
                ]
                for k in doomed:
                    del self._entries[k]
                removed = len(doomed)
            access_cache_entries.set(len(self._entries))
        return removed


class NullAccessCache:
    """Cache that stores nothing; every lookup re-derives the decision."""

    def get(self, key: CacheKey) -> Optional[AccessDecision]:
        return None

    def put(self, key: CacheKey, decision: AccessDecision) -> None:
        return None

    def invalidate(
        self,
        subject_id: Optional[str] = None,
        field_id: Optional[str] = None,
        project_id: Optional[str] = None,
    ) -> int:
        return 0
