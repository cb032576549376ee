from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Mapping, Union

if TYPE_CHECKING:
    from tiercache.keyers import CacheKey

# a key is either a plain id or a structured {id, segment} pair
KeyLike = Union[str, Mapping[str, str], 'CacheKey']

# canonical storage location, e.g. 'segment:id' with both parts percent-encoded
Location = str

# node-style completion callback: callback(err, result)
Callback = Callable[[Union[Exception, None], Any], None]

# separator between segment and id in a location
LOCATION_SEP = ':'

DEFAULT_NAME = 'cache'
DEFAULT_SEGMENT = 'tiercache'
DEFAULT_EXT = '.json'


class _DefaultTTL:
    """Sentinel meaning "use the configured duration"."""
    def __repr__(self) -> str:
        return 'DEFAULT_TTL'

DEFAULT_TTL = _DefaultTTL()


class CacheError(Exception):
    """Base class for all cache errors."""


class InputError(CacheError, ValueError):
    """Raised when a key or ttl has the wrong shape."""


class DecodeError(CacheError):
    """Raised when stored bytes are not a valid encoded entry."""


class StorageUnavailable(CacheError, OSError):
    """Raised when the storage root itself can't be used."""
    def __init__(self, where: Any, reason: str = 'inaccessible'):
        super().__init__(f"Cache storage '{where}' is {reason}")
        self.where = where
