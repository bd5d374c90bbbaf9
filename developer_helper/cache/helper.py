"""
Read-through façade over the memory store.

``CacheHelper`` validates arguments, applies the default expiration policy,
logs capacity evictions and decides how store failures surface: reads
degrade to "not found", writes raise ``StorageFailureError``, and
``get_or_set`` never lets a cache failure hide the factory's result.
"""

import inspect
import threading
from contextlib import contextmanager
from typing import Any, Awaitable, Callable, Dict, Iterator, Optional, TypeVar, Union

from ..config import HelperConfig, get_config
from ..errors import InvalidArgumentError, StorageFailureError
from ..logging import log_error, log_warning
from .policy import Duration, EntryOptions, EvictionReason
from .store import CacheLookup, MemoryStore

T = TypeVar("T")


@contextmanager
def _storage_errors(message: str, key: Optional[str] = None) -> Iterator[None]:
    """Log store failures and surface them as ``StorageFailureError``."""
    try:
        yield
    except InvalidArgumentError:
        raise
    except StorageFailureError as exc:
        log_error(f"{message}: {exc.message}", exc_info=exc, key=key)
        raise
    except Exception as exc:
        log_error(f"{message}: {exc}", exc_info=exc, key=key)
        details = {"error": str(exc)}
        if key is not None:
            details["key"] = key
        raise StorageFailureError(message, details=details) from exc


def log_capacity_eviction(key: str, value: Any, reason: EvictionReason) -> None:
    """Post-eviction callback attached to every entry written through ``CacheHelper``."""
    if reason is EvictionReason.CAPACITY:
        log_warning(f"Cache item evicted due to capacity: {key}", key=key)


class CacheHelper:
    """Memory cache operations with read-through support."""

    def __init__(self, store: Optional[MemoryStore] = None, config: Optional[HelperConfig] = None):
        self.config = config or get_config()
        self.store = store if store is not None else MemoryStore.from_config(self.config)

    def set(self, key: str, value: Any, expiration: Optional[Duration] = None) -> None:
        """Store ``value`` under ``key``.

        ``expiration`` (a ``timedelta`` or seconds) bounds both the sliding
        and the absolute lifetime; without it the configured defaults apply.
        """
        self._require_key(key)
        self._write(key, value, self._entry_options(expiration))

    def set_or_update(self, key: str, value: Any, expiration: Optional[Duration] = None) -> None:
        self.set(key, value, expiration)

    def update(self, key: str, value: Any, expiration: Optional[Duration] = None) -> bool:
        """Overwrite ``key`` if it is cached; never creates it."""
        self._require_key(key)
        options = self._entry_options(expiration)
        with _storage_errors("Failed to update cache item", key):
            return self.store.replace(key, value, options)

    def try_get(self, key: str) -> CacheLookup:
        """Look up ``key`` without raising for store failures."""
        self._require_key(key)
        return self._lookup(key)

    def get(self, key: str, default: Any = None) -> Any:
        lookup = self.try_get(key)
        return lookup.value if lookup.found else default

    def exists(self, key: str) -> bool:
        self._require_key(key)
        try:
            return self.store.contains(key)
        except Exception as exc:
            log_error(f"Failed to check cache item existence: {exc}", exc_info=exc, key=key)
            return False

    def get_or_set(self, key: str, factory: Callable[[], T], expiration: Optional[Duration] = None) -> T:
        """Return the cached value or compute, store and return it.

        Concurrent misses on the same key may each run ``factory``.
        """
        self._require_key(key)
        self._require_factory(factory)
        options = self._entry_options(expiration)

        lookup = self._lookup(key)
        if lookup.found:
            return lookup.value

        value = factory()
        self._store_computed(key, value, options)
        return value

    async def get_or_set_async(
        self,
        key: str,
        factory: Callable[[], Union[Awaitable[T], T]],
        expiration: Optional[Duration] = None,
    ) -> T:
        """Async variant of ``get_or_set``; only awaiting ``factory`` suspends."""
        self._require_key(key)
        self._require_factory(factory)
        options = self._entry_options(expiration)

        lookup = self._lookup(key)
        if lookup.found:
            return lookup.value

        value = factory()
        if inspect.isawaitable(value):
            value = await value
        self._store_computed(key, value, options)
        return value

    def remove(self, key: str) -> None:
        self._require_key(key)
        with _storage_errors("Failed to remove cache item", key):
            self.store.remove(key)

    def clear(self) -> None:
        with _storage_errors("Failed to clear cache"):
            self.store.clear()

    def stats(self) -> Dict[str, Any]:
        return self.store.stats()

    def _entry_options(self, expiration: Optional[Duration]) -> EntryOptions:
        options = EntryOptions.from_expiration(
            expiration,
            self.config.cache_default_sliding_expiration,
            self.config.cache_default_absolute_expiration,
        )
        return options.register_post_eviction_callback(log_capacity_eviction)

    def _lookup(self, key: str) -> CacheLookup:
        try:
            return self.store.try_get(key)
        except Exception as exc:
            log_error(f"Failed to get cache item: {exc}", exc_info=exc, key=key)
            return CacheLookup(found=False, error=exc)

    def _write(self, key: str, value: Any, options: EntryOptions) -> None:
        with _storage_errors("Failed to set cache item", key):
            self.store.set(key, value, options)

    def _store_computed(self, key: str, value: Any, options: EntryOptions) -> None:
        try:
            self._write(key, value, options)
        except StorageFailureError as exc:
            log_warning("Returning uncached value after cache write failure", key=key, error=exc.message)

    @staticmethod
    def _require_key(key: str) -> None:
        if not isinstance(key, str) or not key:
            raise InvalidArgumentError("Cache key must be a non-empty string", details={"key": repr(key)})

    @staticmethod
    def _require_factory(factory: Any) -> None:
        if factory is None or not callable(factory):
            raise InvalidArgumentError("A callable factory is required", details={"factory": repr(factory)})


# Process-wide default helper, built on first use
_cache_helper: Optional[CacheHelper] = None
_cache_helper_lock = threading.Lock()


def get_cache_helper() -> CacheHelper:
    """Get the shared cache helper, creating it on first call."""
    global _cache_helper
    if _cache_helper is None:
        with _cache_helper_lock:
            if _cache_helper is None:
                _cache_helper = CacheHelper()
    return _cache_helper


def init_cache_helper(store: Optional[MemoryStore] = None, config: Optional[HelperConfig] = None) -> CacheHelper:
    """Replace the shared cache helper, e.g. at application start-up."""
    global _cache_helper
    with _cache_helper_lock:
        _cache_helper = CacheHelper(store=store, config=config)
    return _cache_helper
