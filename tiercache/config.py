from __future__ import annotations

import math
import os

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping

from tiercache.constants import DEFAULT_NAME, DEFAULT_SEGMENT


def _default_base() -> str:
    return os.path.join(os.getcwd(), 'cache')


@dataclass
class CacheConfig:
    """Options for a `CacheClient`.

    Files go in `<base>/<name>/`, one per key. `duration` is the default ttl in ms for `set()`
    calls that don't give one; None means entries never expire.
    """
    base: str|Path = field(default_factory=_default_base)
    name: str = DEFAULT_NAME
    duration: float|None = None # ms
    memory: bool = True
    persist: bool = True
    segment: str = DEFAULT_SEGMENT

    def __post_init__(self):
        for flag in ('memory', 'persist'):
            if not isinstance(getattr(self, flag), bool):
                raise ValueError(f'{flag} must be a bool, not {getattr(self, flag)!r}')
        d = self.duration
        if d is not None and (isinstance(d, bool) or not isinstance(d, (int, float)) or not math.isfinite(d) or d < 0):
            raise ValueError(f'duration must be a finite non-negative number of ms or None, not {d!r}')
        if not self.name or not isinstance(self.name, str):
            raise ValueError(f'name must be a non-empty string, not {self.name!r}')
        if not isinstance(self.segment, str):
            raise ValueError(f'segment must be a string, not {self.segment!r}')

    @property
    def cache_dir(self) -> Path:
        return Path(self.base) / self.name

    @classmethod
    def from_dict(cls, options: Mapping[str, Any]|None) -> CacheConfig:
        """Builds a config from a plain mapping, ignoring keys we don't know about."""
        names = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in (options or {}).items() if k in names})
