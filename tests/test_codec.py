import json

import pytest

from tiercache.codec import CacheEntry, EntryCodec, check_ttl, now_ms
from tiercache.constants import DecodeError, InputError
from tiercache.formatters import JsonFormatter
from tiercache.keyers import CacheKey, normalize, parse


@pytest.fixture
def codec():
    return EntryCodec()

# Key mapping tests
def test_normalize_plain_key():
    assert normalize('abc', 's') == 's:abc'

def test_normalize_structured_key():
    """Structured keys use their own segment, not the default."""
    assert normalize({'id': 'abc', 'segment': 'other'}, 's') == 'other:abc'
    assert normalize(CacheKey(id='abc', segment='other'), 's') == 'other:abc'

def test_normalize_key_forms_agree():
    assert normalize('abc', 's') == normalize({'id': 'abc', 'segment': 's'}, 'x')
    assert normalize('abc', 's') == normalize(CacheKey('abc', 's'), 'x')

def test_normalize_escapes_separators():
    """Separator chars inside ids and segments can't make two keys collide."""
    a = normalize({'id': 'b:c', 'segment': 'a'}, 's')
    b = normalize({'id': 'c', 'segment': 'a:b'}, 's')
    assert a != b
    assert a.count(':') == 1 and b.count(':') == 1
    assert '/' not in normalize('../../etc/passwd', 's')

def test_parse_inverts_normalize():
    for seg, id_ in [('s', 'abc'), ('a:b', 'c/d'), ('ünï', 'cödé %20'), ('', '')]:
        assert parse(normalize({'id': id_, 'segment': seg}, 'x')) == CacheKey(id=id_, segment=seg)

@pytest.mark.parametrize('key', [
    {'id': 'abc'},
    {'segment': 's'},
    {'id': 1, 'segment': 's'},
    123,
    None,
    'a\udcff',
    {'id': 'abc', 'segment': '\udcff'},
])
def test_normalize_bad_keys(key):
    with pytest.raises(InputError):
        normalize(key, 's')

def test_parse_bad_location():
    with pytest.raises(InputError):
        parse('no-separator')

# Formatter tests
def test_json_formatter_basic():
    """Test basic JSON serialization/deserialization."""
    formatter = JsonFormatter()
    obj = {'a': 1, 'b': [2, 3], 'c': {'d': 4}}

    data = formatter.dumps(obj)
    assert isinstance(data, bytes)
    assert formatter.loads(data) == obj

def test_json_formatter_custom_encoder():
    """Test JSON formatter with custom encoder."""
    class CustomEncoder(json.JSONEncoder):
        def default(self, obj):
            if isinstance(obj, set):
                return sorted(obj)
            return super().default(obj)

    formatter = JsonFormatter(EncoderCls=CustomEncoder)
    assert formatter.loads(formatter.dumps({'a': {3, 1, 2}})) == {'a': [1, 2, 3]}

def test_json_formatter_invalid_input():
    formatter = JsonFormatter()
    with pytest.raises(json.JSONDecodeError):
        formatter.loads(b'invalid json')

    class UnserializableObject:
        pass

    with pytest.raises(TypeError):
        formatter.dumps(UnserializableObject())

    # NaN and Infinity are not valid JSON
    with pytest.raises(ValueError):
        formatter.dumps({'a': float('nan')})
    with pytest.raises(ValueError):
        formatter.dumps(float('inf'))

# Codec tests
def test_encode_decode(codec):
    before = now_ms()
    entry = codec.decode(codec.encode({'x': [1, 'two']}, 5000))
    assert entry.item == {'x': [1, 'two']}
    assert before <= entry.stored <= now_ms()
    assert entry.ttl == 5000

def test_decode_reencodes_identically(codec):
    data = codec.encode('value', None, stored=1234)
    entry = codec.decode(data)
    assert entry == CacheEntry(item='value', stored=1234, ttl=None)
    assert codec.dumps(entry) == data

@pytest.mark.parametrize('data', [
    b'',
    b'{"item": 1, "stored": 12',
    b'\xff\xfe',
    b'[1, 2, 3]',
    b'{"item": 1, "stored": 100}',
    b'{"item": 1, "ttl": 100}',
    b'{"item": 1, "stored": 100, "ttl": null, "extra": 1}',
    b'{"item": 1, "stored": "yesterday", "ttl": null}',
    b'{"item": 1, "stored": true, "ttl": null}',
    b'{"item": 1, "stored": 100, "ttl": -5}',
    b'{"item": 1, "stored": 100, "ttl": "long"}',
    b'{"item": 1, "stored": 100, "ttl": NaN}',
    b'{"item": 1, "stored": 100, "ttl": Infinity}',
    b'{"item": 1, "stored": NaN, "ttl": null}',
])
def test_decode_rejects_malformed(codec, data):
    with pytest.raises(DecodeError):
        codec.decode(data)

def test_is_live():
    entry = CacheEntry(item=1, stored=1000, ttl=10)
    assert EntryCodec.is_live(entry, 1000)
    assert EntryCodec.is_live(entry, 1009)
    assert not EntryCodec.is_live(entry, 1010)
    assert not EntryCodec.is_live(CacheEntry(item=1, stored=1000, ttl=0), 1000)
    assert EntryCodec.is_live(CacheEntry(item=1, stored=0, ttl=None), 10**15)

def test_remaining():
    entry = CacheEntry(item=1, stored=1000, ttl=10)
    assert entry.expires == 1010
    assert entry.remaining(1004) == 6
    assert CacheEntry(item=1, stored=1000).remaining(5000) is None

@pytest.mark.parametrize('ttl', [-1, 'soon', True, [10], float('nan'), float('inf'), float('-inf')])
def test_check_ttl_rejects(ttl):
    with pytest.raises(InputError):
        check_ttl(ttl)

def test_check_ttl_accepts():
    assert check_ttl(None) is None
    assert check_ttl(0) == 0
    assert check_ttl(1.5) == 1.5
