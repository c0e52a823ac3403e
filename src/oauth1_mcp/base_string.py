"""Signature base string construction (RFC 5849 section 3.4.1)."""

import logging
import urllib.parse
from collections.abc import Iterable

from .encoding import percent_encode
from .exceptions import MalformedUrlError
from .parameters import ParameterSet

logger = logging.getLogger(__name__)

DEFAULT_PORTS = {"http": 80, "https": 443}

# RFC 3986 pchar minus unreserved, which quote() always leaves alone
PATH_SAFE = ":@!$&'()*+,;="


def normalize_url(url: str) -> str:
    """Normalize a request URL into the base string URI.

    Scheme and host are lowercased, query and fragment are dropped, and the
    port is kept only when it is not the scheme's default. Each path segment
    is decoded and re-encoded, so escapes differing only in hex case (or
    escaping an unreserved character) yield the same URI.

    Args:
        url: The request URL, possibly with query string.

    Returns:
        The base string URI, e.g. ``http://example.com/resource``.

    Raises:
        MalformedUrlError: If the URL has no scheme or host or cannot be parsed.
    """
    try:
        parts = urllib.parse.urlsplit(url)
        port = parts.port
    except (ValueError, TypeError, AttributeError) as e:
        raise MalformedUrlError(f"Cannot parse URL {url!r}: {e}") from e

    scheme = parts.scheme.lower()
    host = parts.hostname
    if not scheme or not host:
        raise MalformedUrlError(f"URL must be absolute with scheme and host: {url!r}")

    if ":" in host:
        host = f"[{host}]"
    if port is not None and port != DEFAULT_PORTS.get(scheme):
        host = f"{host}:{port}"

    return f"{scheme}://{host}{_normalize_path(parts.path)}"


def _normalize_path(path: str) -> str:
    if not path:
        return "/"
    # Encoded slashes stay inside their segment
    return "/".join(
        urllib.parse.quote(urllib.parse.unquote_to_bytes(segment), safe=PATH_SAFE)
        for segment in path.split("/")
    )


def normalize_parameters(params: ParameterSet | Iterable[tuple[str, str]]) -> str:
    """Produce the normalized parameter string.

    Names and values are encoded individually, sorted by name then value,
    and joined as ``name=value`` pairs separated by ``&``. Any
    ``oauth_signature`` is left out.
    """
    pairs = params.items() if isinstance(params, ParameterSet) else params
    encoded = sorted(
        (percent_encode(name), percent_encode(value))
        for name, value in pairs
        if name != "oauth_signature"
    )
    return "&".join(f"{name}={value}" for name, value in encoded)


def build_base_string(
    method: str,
    url: str,
    params: ParameterSet | Iterable[tuple[str, str]],
) -> str:
    """Create the OAuth1 signature base string.

    Args:
        method: HTTP method.
        url: The request URL; its query is expected to be in ``params``.
        params: All parameters to sign.

    Returns:
        The signature base string.
    """
    base_string = "&".join(
        [
            method.upper(),
            percent_encode(normalize_url(url)),
            percent_encode(normalize_parameters(params)),
        ]
    )
    logger.debug("Signature base string: %s", base_string)
    return base_string
