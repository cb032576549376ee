from .backends import (
    StorageBackend,
    MemoryBackend,
    FileBackend,
    SQLBackend,
)
from .client import CacheClient, CachedItem
from .codec import CacheEntry, EntryCodec
from .config import CacheConfig
from .constants import (
    DEFAULT_TTL,
    CacheError,
    DecodeError,
    InputError,
    StorageUnavailable,
)
from .formatters import CacheFormatter, JsonFormatter
from .keyers import CacheKey, normalize, parse
from .tiers import Tier, MemoryTier, PersistentTier

__all__ = [
    'StorageBackend',
    'MemoryBackend',
    'FileBackend',
    'SQLBackend',
    'CacheClient',
    'CachedItem',
    'CacheEntry',
    'EntryCodec',
    'CacheConfig',
    'DEFAULT_TTL',
    'CacheError',
    'DecodeError',
    'InputError',
    'StorageUnavailable',
    'CacheFormatter',
    'JsonFormatter',
    'CacheKey',
    'normalize',
    'parse',
    'Tier',
    'MemoryTier',
    'PersistentTier',
]
