"""
In-memory caches shared by the relay engine and the edit/delete propagator.

Each cache owns its own asyncio.Lock. Critical sections only copy or write
plain values; callers perform network I/O after the lock is released.
"""
import asyncio
import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Generic, List, Optional, Tuple, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K")
V = TypeVar("V")

# (mirrored message id, target channel id)
MirrorEntry = Tuple[int, int]
# (target channel id, source author id)
EndpointKey = Tuple[int, int]


class LockedCache(Generic[K, V]):
    """Mapping guarded by its own lock, optionally capped in insertion order."""

    def __init__(self, name: str, max_entries: Optional[int] = None):
        self.name = name
        self.max_entries = max_entries
        self._data: "OrderedDict[K, V]" = OrderedDict()
        self._lock = asyncio.Lock()

    async def get(self, key: K) -> Optional[V]:
        async with self._lock:
            return self._data.get(key)

    async def set(self, key: K, value: V) -> None:
        async with self._lock:
            self._data[key] = value
            self._data.move_to_end(key)
            self._evict()

    async def size(self) -> int:
        async with self._lock:
            return len(self._data)

    def locked(self) -> bool:
        return self._lock.locked()

    def _evict(self) -> None:
        if self.max_entries is None:
            return
        while len(self._data) > self.max_entries:
            evicted, _ = self._data.popitem(last=False)
            logger.debug(f"Evicted {evicted} from {self.name} cache")


class ProxyEndpointCache(LockedCache[EndpointKey, int]):
    """(target channel, author) -> webhook id. Entries may go stale."""

    def __init__(self):
        super().__init__("proxy_endpoint")


class RelayCache(LockedCache[int, Tuple[MirrorEntry, ...]]):
    """Source message id -> mirrored copies that were successfully sent."""

    def __init__(self, max_entries: Optional[int] = None):
        super().__init__("relay", max_entries)

    async def record(self, source_message_id: int, entries: List[MirrorEntry]) -> None:
        await self.set(source_message_id, tuple(entries))

    async def mirrors_of(self, source_message_id: int) -> Optional[List[MirrorEntry]]:
        """A copy of the cached mirrors, or None when the message was never relayed."""
        entries = await self.get(source_message_id)
        if entries is None:
            return None
        return list(entries)


class AuthorCache(LockedCache[int, int]):
    """Source message id -> source author id."""

    def __init__(self, max_entries: Optional[int] = None):
        super().__init__("author", max_entries)


class DiagnosticCounter:
    """Count of observed messages. Only used for logging."""

    def __init__(self):
        self._value = 0
        self._lock = asyncio.Lock()

    async def increment(self) -> int:
        async with self._lock:
            self._value += 1
            return self._value

    @property
    def value(self) -> int:
        return self._value

    def locked(self) -> bool:
        return self._lock.locked()


@dataclass
class MirrorState:
    """Process-wide mutable state, created empty at startup and never persisted."""

    endpoints: ProxyEndpointCache = field(default_factory=ProxyEndpointCache)
    relays: RelayCache = field(default_factory=RelayCache)
    authors: AuthorCache = field(default_factory=AuthorCache)
    counter: DiagnosticCounter = field(default_factory=DiagnosticCounter)

    @classmethod
    def create(cls, max_entries: Optional[int] = None) -> "MirrorState":
        return cls(
            relays=RelayCache(max_entries),
            authors=AuthorCache(max_entries),
        )

    def any_locked(self) -> bool:
        return any(
            cache.locked()
            for cache in (self.endpoints, self.relays, self.authors, self.counter)
        )

    async def snapshot(self) -> dict:
        return {
            'messages_observed': self.counter.value,
            'relay_entries': await self.relays.size(),
            'author_entries': await self.authors.size(),
            'proxy_endpoints': await self.endpoints.size(),
        }
