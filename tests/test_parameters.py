"""Tests for parameter collection."""

from oauth1_mcp.models import NonceTimestamp
from oauth1_mcp.parameters import (
    ParameterSet,
    collect,
    is_form_encoded,
    oauth_protocol_parameters,
)


def _oauth() -> dict[str, str]:
    return oauth_protocol_parameters(
        consumer_key="consumer_key",
        signature_method="HMAC-SHA1",
        nonce_timestamp=NonceTimestamp(nonce="nonce", timestamp=1000),
    )


class TestOAuthProtocolParameters:
    """Tests for the oauth_* protocol parameter set."""

    def test_standard_parameters(self):
        params = _oauth()

        assert params == {
            "oauth_consumer_key": "consumer_key",
            "oauth_signature_method": "HMAC-SHA1",
            "oauth_timestamp": "1000",
            "oauth_nonce": "nonce",
            "oauth_version": "1.0",
        }
        assert "oauth_token" not in params

    def test_token_callback_and_verifier(self):
        params = oauth_protocol_parameters(
            consumer_key="ck",
            signature_method="HMAC-SHA1",
            nonce_timestamp=NonceTimestamp(nonce="n", timestamp=1),
            token="tok",
            callback="oob",
            verifier="ver",
        )

        assert list(params) == [
            "oauth_consumer_key",
            "oauth_token",
            "oauth_signature_method",
            "oauth_timestamp",
            "oauth_nonce",
            "oauth_version",
            "oauth_callback",
            "oauth_verifier",
        ]
        assert params["oauth_token"] == "tok"
        assert params["oauth_callback"] == "oob"
        assert params["oauth_verifier"] == "ver"

    def test_version_can_be_omitted(self):
        params = oauth_protocol_parameters(
            consumer_key="ck",
            signature_method="HMAC-SHA1",
            nonce_timestamp=NonceTimestamp(nonce="n", timestamp=1),
            version=None,
        )
        assert "oauth_version" not in params


class TestParameterSet:
    """Tests for the ordered multi-map."""

    def test_repeated_names_are_kept(self):
        params = ParameterSet([("a", "1"), ("b", "2"), ("a", "3")])

        assert params.get_all("a") == ["1", "3"]
        assert params.get("a") == "1"
        assert params.items() == [("a", "1"), ("a", "3"), ("b", "2")]
        assert len(params) == 3
        assert "b" in params
        assert "c" not in params

    def test_equality_ignores_order(self):
        assert ParameterSet([("a", "1"), ("b", "2")]) == ParameterSet([("b", "2"), ("a", "1")])

    def test_copy_is_independent(self):
        params = ParameterSet([("a", "1")])
        copied = params.copy()
        copied.add("b", "2")

        assert "b" not in params


class TestCollect:
    """Tests for merging protocol, query and body parameters."""

    def test_query_is_parsed_and_decoded(self):
        params = collect(_oauth(), query="b5=%3D%253D&a3=a&c%40=&a2=r%20b")

        assert params.get("b5") == "=%3D"
        assert params.get("c@") == ""
        assert params.get("a2") == "r b"
        assert params.get("oauth_consumer_key") == "consumer_key"

    def test_form_body_is_included(self):
        params = collect(
            _oauth(),
            query="a3=a",
            body="c2&a3=2+q",
            content_type="application/x-www-form-urlencoded",
        )

        assert params.get_all("a3") == ["a", "2 q"]
        assert params.get("c2") == ""

    def test_form_body_with_charset_parameter(self):
        params = collect(
            _oauth(),
            body=b"x=1",
            content_type="Application/X-WWW-Form-Urlencoded; charset=utf-8",
        )
        assert params.get("x") == "1"

    def test_json_body_is_excluded(self):
        params = collect(_oauth(), body='{"x": 1}', content_type="application/json")

        assert len(params) == len(_oauth())

    def test_multipart_body_is_excluded(self):
        params = collect(
            _oauth(), body="x=1", content_type="multipart/form-data; boundary=abc"
        )
        assert "x" not in params

    def test_body_without_content_type_is_excluded(self):
        params = collect(_oauth(), body="x=1")
        assert "x" not in params

    def test_mapping_and_pair_sources(self):
        params = collect(_oauth(), query={"a": "1", "b": ["2", "3"]})
        assert params.get_all("b") == ["2", "3"]

        params = collect(_oauth(), query=[("a", "1"), ("a", "2")])
        assert params.get_all("a") == ["1", "2"]


def test_is_form_encoded():
    assert is_form_encoded("application/x-www-form-urlencoded")
    assert is_form_encoded("application/x-www-form-urlencoded;charset=UTF-8")
    assert not is_form_encoded("application/json")
    assert not is_form_encoded(None)
    assert not is_form_encoded("")
