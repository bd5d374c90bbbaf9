"""
Bounded in-process key-value store.
"""

import threading
from collections import OrderedDict
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Tuple, TYPE_CHECKING

from ..errors import InvalidArgumentError, StorageFailureError
from ..logging import log_error
from .policy import CacheEntry, EntryOptions, EvictionReason, utcnow

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from ..config import HelperConfig


_Evicted = List[Tuple[CacheEntry, EvictionReason]]
_UNSET: Any = object()


class CacheLookup(NamedTuple):
    """Result of a lookup.

    ``error`` is set when the store itself failed, which callers treat as a
    miss rather than as a data error.
    """
    found: bool
    value: Any = None
    error: Optional[BaseException] = None

    @property
    def failed(self) -> bool:
        return self.error is not None


MISS = CacheLookup(found=False)


def _validate_limits(capacity_limit: Optional[int], compaction_fraction: float) -> None:
    if capacity_limit is not None and (isinstance(capacity_limit, bool) or capacity_limit <= 0):
        raise InvalidArgumentError("capacity_limit must be positive", details={"capacity_limit": capacity_limit})
    if not 0.0 < compaction_fraction <= 1.0:
        raise InvalidArgumentError(
            "compaction_fraction must be in (0, 1]",
            details={"compaction_fraction": compaction_fraction},
        )


class MemoryStore:
    """Thread-safe LRU store with capacity compaction and dual expiration.

    All mutations happen under one re-entrant lock. Eviction callbacks run
    after the lock is released, once per evicted entry.
    """

    def __init__(
        self,
        capacity_limit: Optional[int] = 1024,
        compaction_fraction: float = 0.2,
        expiration_scan_frequency: timedelta = timedelta(minutes=5),
        clock: Callable[[], datetime] = utcnow,
    ):
        _validate_limits(capacity_limit, compaction_fraction)
        self._capacity_limit = capacity_limit
        self._compaction_fraction = compaction_fraction
        self._scan_frequency = expiration_scan_frequency
        self._clock = clock

        self._lock = threading.RLock()
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._size = 0
        self._last_scan = clock()
        self._hits = 0
        self._misses = 0
        self._evictions: Dict[str, int] = {reason.value: 0 for reason in EvictionReason}

    @classmethod
    def from_config(cls, config: "HelperConfig", clock: Callable[[], datetime] = utcnow) -> "MemoryStore":
        return cls(
            capacity_limit=config.cache_capacity_limit,
            compaction_fraction=config.cache_compaction_fraction,
            expiration_scan_frequency=config.cache_expiration_scan_frequency,
            clock=clock,
        )

    @property
    def capacity_limit(self) -> Optional[int]:
        return self._capacity_limit

    @property
    def compaction_fraction(self) -> float:
        return self._compaction_fraction

    @property
    def size(self) -> int:
        """Total size units currently held."""
        return self._size

    @property
    def count(self) -> int:
        return len(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def try_get(self, key: str) -> CacheLookup:
        """Look up ``key``, refreshing its sliding deadline on a hit."""
        evicted: _Evicted = []
        with self._lock:
            now = self._clock()
            result = self._lookup_locked(key, now, evicted)
            if result.found:
                self._hits += 1
            else:
                self._misses += 1
            self._scan_if_due(now, evicted)
        self._notify(evicted)
        return result

    def contains(self, key: str) -> bool:
        return self.try_get(key).found

    def set(self, key: str, value: Any, options: Optional[EntryOptions] = None) -> CacheEntry:
        """Insert or overwrite ``key``; may compact to stay within capacity."""
        evicted: _Evicted = []
        with self._lock:
            now = self._clock()
            entry = self._set_locked(key, value, options or EntryOptions(), now, evicted)
        self._notify(evicted)
        return entry

    def replace(self, key: str, value: Any, options: Optional[EntryOptions] = None) -> bool:
        """Overwrite ``key`` only if it is currently present and unexpired."""
        evicted: _Evicted = []
        with self._lock:
            now = self._clock()
            if not self._lookup_locked(key, now, evicted).found:
                replaced = False
            else:
                self._set_locked(key, value, options or EntryOptions(), now, evicted)
                replaced = True
        self._notify(evicted)
        return replaced

    def remove(self, key: str) -> bool:
        evicted: _Evicted = []
        with self._lock:
            removed = self._detach(key, EvictionReason.REMOVED, evicted)
        self._notify(evicted)
        return removed

    def clear(self) -> int:
        """Remove every entry regardless of size or expiration."""
        evicted: _Evicted = []
        with self._lock:
            for key in list(self._entries):
                self._detach(key, EvictionReason.REMOVED, evicted)
        self._notify(evicted)
        return len(evicted)

    def compact(self, fraction: float) -> int:
        """Drop expired entries, then the least recently used ``fraction`` of the rest."""
        if not 0.0 <= fraction <= 1.0:
            raise InvalidArgumentError("fraction must be in [0, 1]", details={"fraction": fraction})
        evicted: _Evicted = []
        with self._lock:
            self._remove_expired(self._clock(), evicted)
            self._evict_lru(int(self._size * fraction), evicted)
        self._notify(evicted)
        return len(evicted)

    def scan_expired(self) -> int:
        """Physically remove every entry whose deadline has passed."""
        evicted: _Evicted = []
        with self._lock:
            now = self._clock()
            self._last_scan = now
            self._remove_expired(now, evicted)
        self._notify(evicted)
        return len(evicted)

    def reconfigure(self, capacity_limit: Optional[int] = _UNSET, compaction_fraction: Optional[float] = None) -> None:
        """Change limits at runtime.

        Shrinking below the current size evicts through the regular capacity
        path, so every dropped entry is reported.
        """
        evicted: _Evicted = []
        with self._lock:
            new_capacity = self._capacity_limit if capacity_limit is _UNSET else capacity_limit
            new_fraction = self._compaction_fraction if compaction_fraction is None else compaction_fraction
            _validate_limits(new_capacity, new_fraction)
            self._capacity_limit = new_capacity
            self._compaction_fraction = new_fraction
            self._make_room(0, self._clock(), evicted)
        self._notify(evicted)

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._entries)

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "count": len(self._entries),
                "size": self._size,
                "capacity_limit": self._capacity_limit,
                "compaction_fraction": self._compaction_fraction,
                "hits": self._hits,
                "misses": self._misses,
                "evictions": dict(self._evictions),
            }

    def _lookup_locked(self, key: str, now: datetime, evicted: _Evicted) -> CacheLookup:
        entry = self._entries.get(key)
        if entry is None:
            return MISS
        if entry.is_expired(now):
            self._detach(key, EvictionReason.EXPIRED, evicted)
            return MISS
        entry.touch(now)
        self._entries.move_to_end(key)
        return CacheLookup(found=True, value=entry.value)

    def _set_locked(self, key: str, value: Any, options: EntryOptions, now: datetime, evicted: _Evicted) -> CacheEntry:
        entry = CacheEntry.create(key, value, options, now)
        if self._capacity_limit is not None and entry.size > self._capacity_limit:
            raise StorageFailureError(
                "Cache entry is larger than the store capacity",
                details={"key": key, "size": entry.size, "capacity_limit": self._capacity_limit},
            )

        self._detach(key, EvictionReason.REPLACED, evicted)
        self._scan_if_due(now, evicted)
        self._make_room(entry.size, now, evicted)

        self._entries[key] = entry
        self._size += entry.size
        return entry

    def _make_room(self, incoming: int, now: datetime, evicted: _Evicted) -> None:
        if self._capacity_limit is None or self._size + incoming <= self._capacity_limit:
            return
        self._remove_expired(now, evicted)
        overflow = self._size + incoming - self._capacity_limit
        if overflow <= 0:
            return
        self._evict_lru(max(overflow, int(self._size * self._compaction_fraction)), evicted)

    def _evict_lru(self, target: int, evicted: _Evicted) -> None:
        removed = 0
        while removed < target and self._entries:
            key = next(iter(self._entries))
            removed += self._entries[key].size
            self._detach(key, EvictionReason.CAPACITY, evicted)

    def _scan_if_due(self, now: datetime, evicted: _Evicted) -> None:
        if now - self._last_scan < self._scan_frequency:
            return
        self._last_scan = now
        self._remove_expired(now, evicted)

    def _remove_expired(self, now: datetime, evicted: _Evicted) -> None:
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            self._detach(key, EvictionReason.EXPIRED, evicted)

    def _detach(self, key: str, reason: EvictionReason, evicted: _Evicted) -> bool:
        entry = self._entries.pop(key, None)
        if entry is None:
            return False
        self._size -= entry.size
        self._evictions[reason.value] += 1
        evicted.append((entry, reason))
        return True

    def _notify(self, evicted: _Evicted) -> None:
        for entry, reason in evicted:
            for callback in entry.callbacks:
                try:
                    callback(entry.key, entry.value, reason)
                except Exception as exc:
                    log_error(
                        "Cache eviction callback failed",
                        exc_info=exc,
                        key=entry.key,
                        reason=reason.value,
                    )
