"""Collection of OAuth protocol, query and form-body parameters for signing."""

from collections.abc import Iterable, Iterator, Mapping

from .encoding import FORM_CONTENT_TYPE, parse_form
from .models import NonceTimestamp

OAUTH_VERSION = "1.0"

# Protocol order used for the Authorization header; oauth_signature goes last.
OAUTH_PARAMETER_ORDER = (
    "oauth_consumer_key",
    "oauth_token",
    "oauth_signature_method",
    "oauth_timestamp",
    "oauth_nonce",
    "oauth_version",
    "oauth_callback",
    "oauth_verifier",
)

ParameterSource = str | Mapping[str, str] | Iterable[tuple[str, str]] | None


class ParameterSet:
    """Ordered multi-map of request parameters.

    The same name may appear more than once (``a=1&a=2``); every occurrence is
    kept and later participates in the base string.
    """

    def __init__(self, pairs: Iterable[tuple[str, str]] | None = None) -> None:
        self._values: dict[str, list[str]] = {}
        if pairs:
            self.extend(pairs)

    def add(self, name: str, value: str) -> None:
        self._values.setdefault(name, []).append(str(value))

    def extend(self, pairs: Iterable[tuple[str, str]]) -> None:
        for name, value in pairs:
            self.add(name, value)

    def get(self, name: str, default: str | None = None) -> str | None:
        """Return the first value for ``name``."""
        values = self._values.get(name)
        return values[0] if values else default

    def get_all(self, name: str) -> list[str]:
        return list(self._values.get(name, []))

    def items(self) -> list[tuple[str, str]]:
        """Flattened (name, value) pairs, grouped by first occurrence of each name."""
        return [(name, value) for name, values in self._values.items() for value in values]

    def names(self) -> list[str]:
        return list(self._values)

    def copy(self) -> "ParameterSet":
        return ParameterSet(self.items())

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __iter__(self) -> Iterator[tuple[str, str]]:
        return iter(self.items())

    def __len__(self) -> int:
        return sum(len(values) for values in self._values.values())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ParameterSet):
            return NotImplemented
        return sorted(self.items()) == sorted(other.items())

    def __repr__(self) -> str:
        return f"ParameterSet({self.items()!r})"


def is_form_encoded(content_type: str | None) -> bool:
    """Check whether a Content-Type header denotes a form-encoded body.

    Media-type parameters such as ``charset`` are ignored.
    """
    if not content_type:
        return False
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type == FORM_CONTENT_TYPE


def to_pairs(source: ParameterSource) -> list[tuple[str, str]]:
    """Normalize a parameter source into decoded pairs.

    Strings are treated as raw form-encoded text and decoded; mappings and
    pair iterables are taken as already-decoded values.
    """
    if source is None:
        return []
    if isinstance(source, (str, bytes)):
        return parse_form(source)
    if isinstance(source, ParameterSet):
        return source.items()
    if isinstance(source, Mapping):
        pairs = []
        for name, value in source.items():
            if isinstance(value, (list, tuple)):
                pairs.extend((name, str(v)) for v in value)
            else:
                pairs.append((name, str(value)))
        return pairs
    return [(name, str(value)) for name, value in source]


def oauth_protocol_parameters(
    consumer_key: str,
    signature_method: str,
    nonce_timestamp: NonceTimestamp,
    token: str | None = None,
    callback: str | None = None,
    verifier: str | None = None,
    version: str | None = OAUTH_VERSION,
) -> dict[str, str]:
    """Build the OAuth protocol parameters for a signed request.

    Args:
        consumer_key: The consumer key.
        signature_method: Signature method name, e.g. ``HMAC-SHA1``.
        nonce_timestamp: Fresh nonce and timestamp for this request.
        token: Request or access token value, if any.
        callback: ``oauth_callback`` for the request-token step.
        verifier: ``oauth_verifier`` for the access-token step.
        version: ``oauth_version`` value; ``None`` omits the parameter.

    Returns:
        Protocol parameters in header order.
    """
    params = {
        "oauth_consumer_key": consumer_key,
        "oauth_signature_method": signature_method,
        "oauth_timestamp": str(nonce_timestamp.timestamp),
        "oauth_nonce": nonce_timestamp.nonce,
    }
    if version is not None:
        params["oauth_version"] = version

    # Include oauth_token for 3-legged authentication
    if token:
        params["oauth_token"] = token
    if callback is not None:
        params["oauth_callback"] = callback
    if verifier is not None:
        params["oauth_verifier"] = verifier

    return {name: params[name] for name in OAUTH_PARAMETER_ORDER if name in params}


def collect(
    oauth_params: Mapping[str, str],
    query: ParameterSource = None,
    body: ParameterSource | bytes = None,
    content_type: str | None = None,
) -> ParameterSet:
    """Merge protocol, query and form-body parameters into one set.

    Body parameters are signed only for ``application/x-www-form-urlencoded``
    content; multipart, JSON and raw bodies are excluded.

    Args:
        oauth_params: The ``oauth_*`` protocol parameters.
        query: Raw query component or decoded query pairs.
        body: Raw form body or decoded body pairs.
        content_type: Content-Type of the request body.

    Returns:
        The combined parameter set.
    """
    collected = ParameterSet(oauth_params.items())
    collected.extend(to_pairs(query))
    if body is not None and is_form_encoded(content_type):
        collected.extend(to_pairs(body))
    return collected
