"""Percent-encoding and form decoding for OAuth1 (RFC 5849 section 3.6)."""

import urllib.parse

from .exceptions import EncodingError

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def percent_encode(value: str) -> str:
    """Percent-encode a value according to the OAuth1 profile of RFC 3986.

    Every UTF-8 byte outside ``A-Z a-z 0-9 - . _ ~`` becomes ``%XX`` with
    uppercase hex digits. The value is never decoded first, so ``"100%"``
    encodes to ``"100%25"``.

    Args:
        value: The raw (not pre-encoded) value.

    Returns:
        Percent-encoded string.

    Raises:
        EncodingError: If the value has no UTF-8 representation.
    """
    try:
        raw = str(value).encode("utf-8")
    except UnicodeEncodeError as e:
        raise EncodingError(f"Value cannot be encoded as UTF-8: {e}") from e
    return urllib.parse.quote(raw, safe="~")


def form_decode(value: str) -> str:
    """Decode an application/x-www-form-urlencoded component."""
    try:
        return urllib.parse.unquote_plus(value, errors="strict")
    except UnicodeDecodeError as e:
        raise EncodingError(f"Invalid UTF-8 in form-encoded value: {e}") from e


def parse_form(text: str | bytes | None) -> list[tuple[str, str]]:
    """Parse a form-encoded string into decoded name/value pairs.

    Order and repeated names are preserved. A pair without ``=`` yields an
    empty value; empty pairs are skipped.

    Args:
        text: Raw query component or form body.

    Returns:
        List of (name, value) tuples.
    """
    if not text:
        return []
    if isinstance(text, bytes):
        try:
            text = text.decode("utf-8")
        except UnicodeDecodeError as e:
            raise EncodingError(f"Form body is not valid UTF-8: {e}") from e
    try:
        return urllib.parse.parse_qsl(text, keep_blank_values=True, errors="strict")
    except UnicodeDecodeError as e:
        raise EncodingError(f"Invalid UTF-8 in form-encoded value: {e}") from e
