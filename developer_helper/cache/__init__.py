"""
In-process memory cache.

- policy: entry options, sliding/absolute expiration, eviction reasons
- store: thread-safe bounded store with LRU compaction
- helper: read-through façade (get_or_set) with logging and error policy
"""

from .helper import CacheHelper, get_cache_helper, init_cache_helper, log_capacity_eviction
from .policy import CacheEntry, EntryOptions, EvictionReason
from .store import CacheLookup, MemoryStore

__all__ = [
    "CacheEntry",
    "CacheHelper",
    "CacheLookup",
    "EntryOptions",
    "EvictionReason",
    "MemoryStore",
    "get_cache_helper",
    "init_cache_helper",
    "log_capacity_eviction",
]
