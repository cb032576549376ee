import pytest

from tiercache.client import CacheClient


@pytest.fixture
def make_client(tmp_path):
    """Factory for clients whose files live under a per-test directory."""
    def _make(**kwargs) -> CacheClient:
        kwargs.setdefault('base', tmp_path)
        kwargs.setdefault('segment', 's')
        return CacheClient(**kwargs)
    return _make
