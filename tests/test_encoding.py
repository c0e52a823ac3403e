"""Tests for OAuth1 percent-encoding and form decoding."""

import pytest

from oauth1_mcp.encoding import form_decode, parse_form, percent_encode
from oauth1_mcp.exceptions import EncodingError


@pytest.mark.parametrize(
    "raw, expected",
    [
        (" ", "%20"),
        ("~", "~"),
        ("+", "%2B"),
        ("*", "%2A"),
        ("100%", "100%25"),
        ("hello world", "hello%20world"),
        ("foo=bar", "foo%3Dbar"),
        ("a&b", "a%26b"),
        ("AZaz09-._~", "AZaz09-._~"),
        ("/path?x", "%2Fpath%3Fx"),
        ("é", "%C3%A9"),
        ("☃", "%E2%98%83"),
        ("", ""),
    ],
)
def test_percent_encode(raw, expected):
    assert percent_encode(raw) == expected


def test_percent_encode_uses_uppercase_hex():
    encoded = percent_encode("\xff:")
    assert encoded == "%C3%BF%3A"
    assert encoded == encoded.upper()


def test_percent_encode_does_not_decode_first():
    """An already-encoded value is encoded again, never decoded."""
    assert percent_encode("%20") == "%2520"
    assert percent_encode("a%2Fb") == "a%252Fb"


def test_percent_encode_converts_non_strings():
    assert percent_encode(123) == "123"


def test_percent_encode_rejects_lone_surrogate():
    with pytest.raises(EncodingError):
        percent_encode("bad\ud800value")


def test_form_decode():
    assert form_decode("a+b%20c") == "a b c"
    assert form_decode("%3D%253D") == "=%3D"


def test_form_decode_invalid_utf8():
    with pytest.raises(EncodingError):
        form_decode("%FF")


def test_parse_form_keeps_order_and_repeats():
    assert parse_form("a=1&b=2&a=3") == [("a", "1"), ("b", "2"), ("a", "3")]


def test_parse_form_blank_values():
    assert parse_form("c2&a3=2+q") == [("c2", ""), ("a3", "2 q")]


def test_parse_form_skips_empty_pairs():
    assert parse_form("a=1&&b=2") == [("a", "1"), ("b", "2")]


def test_parse_form_bytes_and_empty():
    assert parse_form(b"x=%C3%A9") == [("x", "é")]
    assert parse_form(None) == []
    assert parse_form("") == []
    assert parse_form(b"") == []
