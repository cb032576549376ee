"""Encoding of cache entries and their time-to-live bookkeeping.

An entry on the wire is a record with exactly three fields:

- `item`: the cached value (anything the formatter can serialize)
- `stored`: when it was written, in ms since the epoch
- `ttl`: lifetime in ms, or `None` for entries that never expire

Anything else (missing or extra fields, wrong types, unparseable bytes) is a `DecodeError`.
"""

from __future__ import annotations

import math
import time

from dataclasses import dataclass
from numbers import Real
from typing import Any

from tiercache.constants import DecodeError, InputError
from tiercache.formatters import CacheFormatter, JsonFormatter

ENTRY_FIELDS = frozenset(('item', 'stored', 'ttl'))


def now_ms() -> int:
    """Current time in ms since the epoch."""
    return int(time.time() * 1000)


def _is_number(x: Any) -> bool:
    return isinstance(x, Real) and not isinstance(x, bool)


def check_ttl(ttl: Any) -> float|None:
    """Validates a ttl given by a caller, returning it unchanged."""
    if ttl is None:
        return None
    if not _is_number(ttl) or not math.isfinite(ttl) or ttl < 0:
        raise InputError(f'ttl must be a finite non-negative number of ms or None, not {ttl!r}')
    return ttl


@dataclass(frozen=True)
class CacheEntry:
    item: Any
    stored: int
    ttl: float|None = None

    @property
    def expires(self) -> float|None:
        """Absolute expiration time in ms, or None if it never expires."""
        return None if self.ttl is None else self.stored + self.ttl

    def remaining(self, now: int) -> float|None:
        """Remaining lifetime in ms at time `now` (None if infinite)."""
        return None if self.ttl is None else self.expires - now


class EntryCodec:
    """Builds, serializes and parses `CacheEntry` records."""
    def __init__(self, formatter: CacheFormatter|None=None):
        self.formatter = formatter or JsonFormatter()

    def make_entry(self, value: Any, ttl: float|None, stored: int|None=None) -> CacheEntry:
        return CacheEntry(item=value, stored=now_ms() if stored is None else stored, ttl=check_ttl(ttl))

    def dumps(self, entry: CacheEntry) -> bytes:
        return self.formatter.dumps(dict(item=entry.item, stored=entry.stored, ttl=entry.ttl))

    def encode(self, value: Any, ttl: float|None, stored: int|None=None) -> bytes:
        """Wraps `value` with the current time and `ttl` and serializes it."""
        return self.dumps(self.make_entry(value, ttl, stored=stored))

    def decode(self, data: bytes) -> CacheEntry:
        """Parses bytes into a `CacheEntry`, raising `DecodeError` on anything malformed.

        Truncated or otherwise corrupted data always ends up here as a `DecodeError`, never as
        whatever the underlying formatter happened to raise.
        """
        try:
            obj = self.formatter.loads(data)
        except Exception as e:
            raise DecodeError(f'Could not parse cache entry: {e}') from e
        if not isinstance(obj, dict) or set(obj) != ENTRY_FIELDS:
            raise DecodeError(f'Cache entry has wrong fields: {obj!r:.100}')
        stored, ttl = obj['stored'], obj['ttl']
        if not _is_number(stored) or not math.isfinite(stored):
            raise DecodeError(f'Bad stored time {stored!r}')
        if ttl is not None and (not _is_number(ttl) or not math.isfinite(ttl) or ttl < 0):
            raise DecodeError(f'Bad ttl {ttl!r}')
        return CacheEntry(item=obj['item'], stored=stored, ttl=ttl)

    @staticmethod
    def is_live(entry: CacheEntry, now: int|None=None) -> bool:
        """An entry is live iff its ttl is infinite or `now - stored < ttl`."""
        if entry.ttl is None:
            return True
        if now is None:
            now = now_ms()
        return now - entry.stored < entry.ttl
