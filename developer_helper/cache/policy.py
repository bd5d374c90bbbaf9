"""
Expiration policy for memory cache entries.

An entry may carry a sliding window, an absolute deadline, or both. Its
effective deadline is the earlier of ``last_accessed + sliding_expiration``
and ``absolute_expiration``; an entry with neither never expires by time.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, List, Optional, Tuple, Union

from ..errors import InvalidArgumentError


class EvictionReason(Enum):
    """Why an entry left the store."""
    REMOVED = "removed"      # Explicit remove or clear
    REPLACED = "replaced"    # Overwritten by a newer set
    EXPIRED = "expired"      # Sliding or absolute deadline passed
    CAPACITY = "capacity"    # Compacted to make room


EvictionCallback = Callable[[str, Any, EvictionReason], None]
Duration = Union[timedelta, int, float]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_timedelta(value: Optional[Duration], name: str = "expiration") -> Optional[timedelta]:
    """Accept a ``timedelta`` or a number of seconds."""
    if value is None or isinstance(value, timedelta):
        return value
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidArgumentError(
            f"{name} must be a timedelta or a number of seconds",
            details={name: repr(value)},
        )
    return timedelta(seconds=value)


@dataclass
class EntryOptions:
    """Per-entry expiration, size and eviction callbacks."""

    sliding_expiration: Optional[timedelta] = None
    absolute_expiration: Optional[datetime] = None
    absolute_expiration_relative_to_now: Optional[timedelta] = None
    size: int = 1
    post_eviction_callbacks: List[EvictionCallback] = field(default_factory=list)

    def __post_init__(self):
        if self.sliding_expiration is not None:
            if self.sliding_expiration < timedelta(0):
                raise InvalidArgumentError(
                    "sliding_expiration must not be negative",
                    details={"sliding_expiration": str(self.sliding_expiration)},
                )
            if self.sliding_expiration == timedelta(0):
                # Zero sliding window means "absolute deadline only"
                self.sliding_expiration = None

        if self.absolute_expiration_relative_to_now is not None and \
                self.absolute_expiration_relative_to_now <= timedelta(0):
            raise InvalidArgumentError(
                "absolute_expiration_relative_to_now must be positive",
                details={"absolute_expiration_relative_to_now": str(self.absolute_expiration_relative_to_now)},
            )

        if self.absolute_expiration is not None and self.absolute_expiration.tzinfo is None:
            self.absolute_expiration = self.absolute_expiration.replace(tzinfo=timezone.utc)

        if isinstance(self.size, bool) or not isinstance(self.size, int) or self.size < 1:
            raise InvalidArgumentError("size must be a positive integer", details={"size": repr(self.size)})

    @classmethod
    def from_expiration(
        cls,
        expiration: Optional[Duration],
        default_sliding: Optional[timedelta],
        default_absolute: Optional[timedelta],
    ) -> "EntryOptions":
        """Build options from a single optional TTL.

        An explicit ``expiration`` is used for both the sliding window and the
        absolute deadline, so it is a hard upper bound on the entry's life.
        """
        ttl = to_timedelta(expiration)
        if ttl is not None:
            return cls(sliding_expiration=ttl, absolute_expiration_relative_to_now=ttl)
        return cls(
            sliding_expiration=default_sliding,
            absolute_expiration_relative_to_now=default_absolute,
        )

    def register_post_eviction_callback(self, callback: EvictionCallback) -> "EntryOptions":
        self.post_eviction_callbacks.append(callback)
        return self

    def resolve_absolute_expiration(self, now: datetime) -> Optional[datetime]:
        deadlines = []
        if self.absolute_expiration is not None:
            deadlines.append(self.absolute_expiration)
        if self.absolute_expiration_relative_to_now is not None:
            deadlines.append(now + self.absolute_expiration_relative_to_now)
        return min(deadlines) if deadlines else None


@dataclass
class CacheEntry:
    """A stored value plus the bookkeeping needed to expire it."""

    key: str
    value: Any
    size: int
    created_at: datetime
    last_accessed: datetime
    sliding_expiration: Optional[timedelta] = None
    absolute_expiration: Optional[datetime] = None
    callbacks: Tuple[EvictionCallback, ...] = ()

    @classmethod
    def create(cls, key: str, value: Any, options: EntryOptions, now: datetime) -> "CacheEntry":
        return cls(
            key=key,
            value=value,
            size=options.size,
            created_at=now,
            last_accessed=now,
            sliding_expiration=options.sliding_expiration,
            absolute_expiration=options.resolve_absolute_expiration(now),
            callbacks=tuple(options.post_eviction_callbacks),
        )

    @property
    def effective_expiration(self) -> Optional[datetime]:
        deadlines = []
        if self.sliding_expiration is not None:
            deadlines.append(self.last_accessed + self.sliding_expiration)
        if self.absolute_expiration is not None:
            deadlines.append(self.absolute_expiration)
        return min(deadlines) if deadlines else None

    def is_expired(self, now: datetime) -> bool:
        deadline = self.effective_expiration
        return deadline is not None and now >= deadline

    def touch(self, now: datetime) -> None:
        """Record an access, pushing the sliding deadline forward."""
        self.last_accessed = now
