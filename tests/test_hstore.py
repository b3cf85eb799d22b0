import pytest

from pqkit.hstore import Hstore, quote_hstore

SMORGASBORD = {
    "nullstring": "NULL",
    "actuallynull": None,
    "NULL": "NULL string key",
    "withbracket": "value>42",
    "withequal": "value=42",
    '"withquotes1"': 'this "should" be fine',
    '"withquotes"2"': 'this "should\\" also be fine',
    "embedded1": "value1=>x1",
    "embedded2": '"value2"=>x2',
    "withnewlines": "\n\nvalue\t=>2",
    "<<all sorts of crazy>>": 'this, "should,\\" also, => be fine',
}


def test_null_hstore():
    hs = Hstore({"a": "b"})
    hs.scan(None)
    assert hs.map is None
    assert hs.value() is None


def test_empty_hstore():
    hs = Hstore()
    hs.scan(b"")
    assert hs.map == {}
    assert Hstore({}).value() == b""


@pytest.mark.parametrize(
    "mapping",
    [
        {"key1": "value1"},
        {"key1": "value1", "key2": "value2", "key3": "value3"},
        SMORGASBORD,
    ],
)
def test_round_trip(mapping):
    encoded = Hstore(dict(mapping)).value()
    hs = Hstore()
    hs.scan(encoded)
    assert hs.map == mapping


def test_scan_server_format():
    hs = Hstore()
    hs.scan(b'"a"=>"1", "b"=>NULL, "c"=>"NULL"')
    assert hs.map == {"a": "1", "b": None, "c": "NULL"}


def test_scan_accepts_str():
    hs = Hstore()
    hs.scan('"k"=>"v"')
    assert hs.map == {"k": "v"}


def test_value_encoding():
    assert Hstore({"a": None}).value() == b'"a"=>NULL'
    assert Hstore({"q": 'x"y'}).value() == b'"q"=>"x\\"y"'


def test_quote_hstore():
    assert quote_hstore(None) == "NULL"
    assert quote_hstore('a\\b"c') == '"a\\\\b\\"c"'


def test_quote_hstore_rejects_other_types():
    with pytest.raises(TypeError):
        quote_hstore(5)