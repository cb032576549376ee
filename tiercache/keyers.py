"""Maps caller keys to canonical storage locations and back."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from urllib.parse import quote, unquote

from tiercache.constants import InputError, KeyLike, Location, LOCATION_SEP


@dataclass(frozen=True)
class CacheKey:
    """A structured key: an `id` within a `segment`."""
    id: str
    segment: str


def _split_key(key: KeyLike, segment: str) -> tuple[str, str]:
    """Returns `(segment, id)` for any supported key form."""
    if isinstance(key, str):
        return segment, key
    if isinstance(key, CacheKey):
        seg, id_ = key.segment, key.id
    elif isinstance(key, Mapping):
        if 'id' not in key or 'segment' not in key:
            raise InputError(f"Structured key needs both 'id' and 'segment': {key!r}")
        seg, id_ = key['segment'], key['id']
    else:
        raise InputError(f"Unsupported key type {type(key).__name__}: {key!r}")
    if not isinstance(seg, str) or not isinstance(id_, str):
        raise InputError(f"Key id and segment must be strings: {key!r}")
    return seg, id_


def normalize(key: KeyLike, segment: str) -> Location:
    """Convert a key into its canonical location string.

    Plain string keys are placed in the given default `segment`; structured keys (a `CacheKey` or a
    mapping with `id` and `segment`) always use their own segment. Both components are
    percent-encoded, so the separator can never appear inside either of them.
    """
    seg, id_ = _split_key(key, segment)
    try:
        return quote(seg, safe='') + LOCATION_SEP + quote(id_, safe='')
    except UnicodeEncodeError as e:
        raise InputError(f"Key is not valid unicode text: {key!r}") from e


def parse(location: Location) -> CacheKey:
    """Inverse of `normalize()`."""
    seg, sep, id_ = location.partition(LOCATION_SEP)
    if not sep:
        raise InputError(f"Not a cache location: {location!r}")
    return CacheKey(id=unquote(id_), segment=unquote(seg))
