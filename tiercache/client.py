"""The cache client: memory and/or persistent tiers behind one get/set/delete/has/keys interface.

Tier policy:

- `get()` checks the memory tier first (if enabled), then the persistent tier (if enabled), and
  returns the first live entry. A persistent hit is NOT copied back into memory.
- `set()` encodes the entry once and writes the same bytes to the persistent tier and then the
  memory tier, so both agree on `stored` and hence on expiration.
- `delete()` removes from every enabled tier; absent keys are fine.
- `has()` is exactly "would `get()` return something", and never deletes expired entries.
- `keys()` lists the persistent tier if enabled, else the memory tier.

With both tiers disabled the client is a no-op cache that always misses.

Every public operation returns its result (or raises), and also accepts an optional `callback(err,
result)` keyword. If a callback is given, it receives the outcome instead of the exception being
raised. There are also `*_async()` versions that run the operation in a worker thread.
"""

from __future__ import annotations

import asyncio
import logging
import threading

from dataclasses import asdict, dataclass
from functools import wraps
from typing import Any, Callable

from tiercache.backends import StorageBackend
from tiercache.codec import CacheEntry, EntryCodec, now_ms
from tiercache.config import CacheConfig
from tiercache.constants import (
    DEFAULT_TTL,
    Callback,
    CacheError,
    InputError,
    KeyLike,
    Location,
)
from tiercache.formatters import CacheFormatter
from tiercache.keyers import CacheKey, normalize, parse
from tiercache.tiers import MemoryTier, PersistentTier, Tier


logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class CachedItem:
    """What `get()` returns on a hit."""
    item: Any
    stored: int # ms since epoch
    ttl: float|None # remaining ms, None if it never expires


def with_callback(method: Callable) -> Callable:
    """Lets `method` take an optional `callback(err, result)` keyword.

    Without a callback, the method just returns or raises as usual. With one, the callback gets
    `(None, result)` or `(exc, None)`, and the exception is not re-raised.
    """
    @wraps(method)
    def wrapper(self, *args, callback: Callback|None=None, **kwargs):
        if callback is None:
            return method(self, *args, **kwargs)
        try:
            result = method(self, *args, **kwargs)
        except Exception as e:
            callback(e, None)
            return None
        callback(None, result)
        return result
    return wrapper


class CacheClient:
    """A key-value cache with per-entry ttls, backed by memory, a persistent store, or both."""
    def __init__(self,
                 config: CacheConfig|None=None,
                 *,
                 backend: StorageBackend|None=None,
                 formatter: CacheFormatter|None=None,
                 **overrides: Any):
        """Initializes the client and whichever tiers the config enables.

        Args:
            config: Options; any keyword `overrides` are applied on top of it
            backend: Storage for the persistent tier [default: files under `config.cache_dir`,
                which is created if missing]
            formatter: Serialization for entries [default: JsonFormatter]
        """
        options = asdict(config) if config is not None else {}
        options.update(overrides)
        self.config = CacheConfig.from_dict(options)
        self.codec = EntryCodec(formatter)
        self.memory: MemoryTier|None = MemoryTier(codec=self.codec) if self.config.memory else None
        self.persistent: PersistentTier|None = None
        if self.config.persist:
            if backend is not None:
                self.persistent = PersistentTier(backend, codec=self.codec)
            else:
                self.persistent = PersistentTier.in_dir(self.config.cache_dir, codec=self.codec)
        elif backend is not None:
            logger.warning(f'Ignoring backend {backend!r} since persist=False')
        self._lock = threading.Lock()
        self.stats: dict[str, int] = {
            'hits': 0,
            'misses': 0,
            'sets': 0,
            'deletes': 0,
        }
        self._started = False
        self._stopped = False
        logger.info(f'Initialized {self}')

    def __repr__(self) -> str:
        return f'<CacheClient segment={self.config.segment!r} tiers={[t.name for t in self.tiers]}>'

    @property
    def tiers(self) -> list[Tier]:
        """Enabled tiers, in read order."""
        return [t for t in (self.memory, self.persistent) if t is not None]

    @property
    def requires_start(self) -> bool:
        return self.persistent is not None and self.persistent.backend.requires_start

    def start(self) -> None:
        """Starts the persistent backend if it wraps an external connection."""
        if self._started:
            raise RuntimeError('CacheClient.start() called twice')
        self._started = True
        if self.requires_start:
            self.persistent.backend.start()

    def stop(self) -> None:
        """Stops whatever `start()` started."""
        if not self._started:
            raise RuntimeError('CacheClient.stop() called before start()')
        if self._stopped:
            raise RuntimeError('CacheClient.stop() called twice')
        self._stopped = True
        if self.requires_start:
            self.persistent.backend.stop()

    def __enter__(self) -> CacheClient:
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()

    def _count(self, stat: str) -> None:
        with self._lock:
            self.stats[stat] += 1

    def get_stats(self) -> dict[str, int]:
        """Get cache statistics."""
        with self._lock:
            return self.stats.copy()

    def location(self, key: KeyLike) -> Location:
        """Canonical storage location for `key`."""
        return normalize(key, self.config.segment)

    def _lookup(self, location: Location, now: int) -> CacheEntry|None:
        """Returns the first live entry for `location`, in tier order."""
        for tier in self.tiers:
            entry = tier.get(location)
            if entry is not None and self.codec.is_live(entry, now):
                logger.debug(f'{tier.name} hit for {location}')
                return entry
        return None

    @with_callback
    def get(self, key: KeyLike) -> CachedItem|None:
        """Returns the live cached item for `key`, or None if absent, expired or unreadable."""
        location = self.location(key)
        now = now_ms()
        entry = self._lookup(location, now)
        if entry is None:
            logger.debug(f'miss for {location}')
            self._count('misses')
            return None
        self._count('hits')
        return CachedItem(item=entry.item, stored=entry.stored, ttl=entry.remaining(now))

    @with_callback
    def set(self, key: KeyLike, value: Any, ttl: float|None|Any=DEFAULT_TTL) -> None:
        """Stores `value` under `key` for `ttl` ms.

        If `ttl` isn't given we use the configured `duration`; a ttl of None never expires.
        """
        location = self.location(key)
        if ttl is DEFAULT_TTL:
            ttl = self.config.duration
        entry = self.codec.make_entry(value, ttl)
        try:
            data = self.codec.dumps(entry)
        except (TypeError, ValueError) as e:
            raise InputError(f'Cannot serialize value for {location}: {e}') from e
        if self.persistent is not None:
            self.persistent.set(location, data)
        if self.memory is not None:
            self.memory.set(location, data)
        logger.debug(f'set {location} with ttl {ttl}')
        self._count('sets')

    @with_callback
    def delete(self, key: KeyLike) -> None:
        """Removes `key` from all tiers. Deleting a missing key is fine."""
        location = self.location(key)
        for tier in self.tiers:
            tier.delete(location)
        self._count('deletes')

    @with_callback
    def has(self, key: KeyLike) -> bool:
        """True iff `get(key)` would return an item."""
        return self._lookup(self.location(key), now_ms()) is not None

    @with_callback
    def keys(self) -> list[CacheKey]:
        """Lists stored keys from the persistent tier, or the memory tier if that's all we have.

        This includes entries that have expired but not yet been overwritten or deleted.
        """
        tier = self.persistent or self.memory
        if tier is None:
            return []
        ret = []
        for location in tier.keys():
            try:
                ret.append(parse(location))
            except CacheError:
                logger.debug(f'Skipping foreign entry {location!r} in {tier.name} tier')
        return ret

    async def get_async(self, key: KeyLike, callback: Callback|None=None) -> CachedItem|None:
        """Async version of get()."""
        return await asyncio.to_thread(self.get, key, callback=callback)

    async def set_async(self,
                        key: KeyLike,
                        value: Any,
                        ttl: float|None|Any=DEFAULT_TTL,
                        callback: Callback|None=None) -> None:
        """Async version of set()."""
        return await asyncio.to_thread(self.set, key, value, ttl, callback=callback)

    async def delete_async(self, key: KeyLike, callback: Callback|None=None) -> None:
        """Async version of delete()."""
        return await asyncio.to_thread(self.delete, key, callback=callback)

    async def has_async(self, key: KeyLike, callback: Callback|None=None) -> bool:
        """Async version of has()."""
        return await asyncio.to_thread(self.has, key, callback=callback)

    async def keys_async(self, callback: Callback|None=None) -> list[CacheKey]:
        """Async version of keys()."""
        return await asyncio.to_thread(self.keys, callback=callback)
