"""Entry-level views over a storage backend.

A tier stores encoded `CacheEntry` bytes by location. Reads decode and treat anything corrupt as
absent; liveness is checked by `has()` here and by the client on `get()`. Expired entries are never
removed as a side effect of reading.
"""

from __future__ import annotations

import logging

from pathlib import Path

from tiercache.backends import FileBackend, MemoryBackend, StorageBackend
from tiercache.codec import CacheEntry, EntryCodec
from tiercache.constants import DecodeError, Location


logger = logging.getLogger(__name__)

class Tier:
    """One storage tier: a backend plus the codec used to read entries from it."""
    name = 'tier'

    def __init__(self, backend: StorageBackend, codec: EntryCodec|None=None):
        self.backend = backend
        self.codec = codec or EntryCodec()

    def __repr__(self) -> str:
        return f'<{self.__class__.__name__} on {self.backend.__class__.__name__}>'

    def get(self, location: Location) -> CacheEntry|None:
        """Returns the stored entry (live or not), or None if missing or corrupt."""
        data = self.backend.read(location)
        if data is None:
            return None
        try:
            return self.codec.decode(data)
        except DecodeError as e:
            logger.warning(f'Ignoring corrupt {self.name} entry at {location}: {e}')
            return None

    def set(self, location: Location, entry: CacheEntry|bytes) -> None:
        """Stores an entry, given either as a `CacheEntry` or already encoded."""
        data = entry if isinstance(entry, bytes) else self.codec.dumps(entry)
        self.backend.write(location, data)

    def delete(self, location: Location) -> None:
        self.backend.delete(location)

    def has(self, location: Location, now: int|None=None) -> bool:
        """True iff there's a live entry at `location`."""
        entry = self.get(location)
        return entry is not None and self.codec.is_live(entry, now)

    def keys(self) -> list[Location]:
        return self.backend.list()


class MemoryTier(Tier):
    """In-process tier. Owned by a single client and gone when the process exits."""
    name = 'memory'

    def __init__(self, backend: StorageBackend|None=None, codec: EntryCodec|None=None):
        super().__init__(backend or MemoryBackend(), codec=codec)


class PersistentTier(Tier):
    """Tier that outlives the process, by default as one file per key under a directory."""
    name = 'persistent'

    def __init__(self, backend: StorageBackend, codec: EntryCodec|None=None):
        super().__init__(backend, codec=codec)

    @classmethod
    def in_dir(cls, cache_dir: str|Path, codec: EntryCodec|None=None) -> PersistentTier:
        """Makes a file-backed tier under `cache_dir`, creating the directory if needed."""
        codec = codec or EntryCodec()
        return cls(FileBackend(cache_dir, ext=codec.formatter.EXT), codec=codec)
