from __future__ import annotations

import json

from abc import ABC, abstractmethod
from typing import Any

from tiercache.constants import DEFAULT_EXT

class CacheFormatter(ABC):
    """Base class for turning entry records into bytes and back."""
    EXT: str = '.cache'

    @abstractmethod
    def dumps(self, obj: Any) -> bytes:
        """Serialize a record to bytes."""
        pass

    @abstractmethod
    def loads(self, data: bytes) -> Any:
        """Deserialize bytes to a record. May raise anything on bad input."""
        pass

class JsonFormatter(CacheFormatter):
    """JSON serialization format, utf-8 encoded."""
    EXT = DEFAULT_EXT

    def __init__(self, EncoderCls=json.JSONEncoder, DecoderCls=json.JSONDecoder, indent=None):
        self.EncoderCls = EncoderCls
        self.DecoderCls = DecoderCls
        self.indent = indent

    def dumps(self, obj: Any) -> bytes:
        return json.dumps(obj, cls=self.EncoderCls, ensure_ascii=False, allow_nan=False, indent=self.indent).encode('utf-8')

    def loads(self, data: bytes) -> Any:
        return json.loads(data.decode('utf-8'), cls=self.DecoderCls)
