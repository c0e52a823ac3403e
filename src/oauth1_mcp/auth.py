"""OAuth1 request signing and Authorization header assembly."""

import logging
import re
import secrets
import time
import urllib.parse
from collections.abc import Callable, Generator, Mapping

import httpx

from .base_string import build_base_string
from .encoding import percent_encode
from .exceptions import EncodingError, MalformedUrlError
from .models import Credentials, NonceTimestamp, Token
from .parameters import (
    OAUTH_PARAMETER_ORDER,
    ParameterSet,
    ParameterSource,
    collect,
    oauth_protocol_parameters,
    to_pairs,
)
from .signature import HMAC_SHA1, SignatureMethod, get_signature_method

logger = logging.getLogger(__name__)

# name="value"; commas inside the quotes belong to the value
HEADER_PARAM = re.compile(r'([^\s=,]+)\s*=\s*"([^"]*)"')


def build_header(oauth_params: Mapping[str, str], realm: str | None = None) -> str:
    """Assemble the ``Authorization: OAuth ...`` header value.

    Only ``oauth_*`` parameters are emitted, in protocol order, with
    ``oauth_signature`` last. Values are percent-encoded and double-quoted.

    Args:
        oauth_params: Protocol parameters including ``oauth_signature``.
        realm: Optional realm, emitted first and not encoded.

    Returns:
        The header value, e.g. ``OAuth oauth_consumer_key="...", ...``.
    """
    names = [name for name in oauth_params if name.startswith("oauth_")]
    ordered = [name for name in OAUTH_PARAMETER_ORDER if name in names]
    ordered += sorted(
        name for name in names if name not in ordered and name != "oauth_signature"
    )
    if "oauth_signature" in names:
        ordered.append("oauth_signature")

    pairs = [
        f'{percent_encode(name)}="{percent_encode(oauth_params[name])}"'
        for name in ordered
    ]
    if realm is not None:
        pairs.insert(0, f'realm="{realm}"')

    logger.debug("Authorization header parameters: %s", ordered)
    return "OAuth " + ", ".join(pairs)


def parse_header(header: str) -> dict[str, str]:
    """Parse an ``OAuth ...`` header value back into decoded parameters.

    Raises:
        EncodingError: If the value is not an OAuth header.
    """
    scheme, _, rest = header.strip().partition(" ")
    if scheme.lower() != "oauth":
        raise EncodingError(f"Not an OAuth Authorization header: {header!r}")

    params = {}
    rest = rest.strip()
    position = 0
    while position < len(rest):
        if rest[position] in ", \t":
            position += 1
            continue
        match = HEADER_PARAM.match(rest, position)
        if match is None or rest[match.end():].lstrip(" \t")[:1] not in ("", ","):
            raise EncodingError(f"Malformed OAuth header parameter: {rest[position:]!r}")
        name, value = match.groups()
        params[urllib.parse.unquote(name)] = urllib.parse.unquote(value)
        position = match.end()
    return params


def _split_query(url: str) -> tuple[str, str]:
    """Return (url, raw query) for a request URL."""
    try:
        return url, urllib.parse.urlsplit(url).query
    except (ValueError, TypeError, AttributeError) as e:
        raise MalformedUrlError(f"Cannot parse URL {url!r}: {e}") from e


def sign(
    method: str,
    url: str,
    oauth_params: Mapping[str, str],
    additional_params: ParameterSource = None,
    consumer_secret: str = "",
    token_secret: str | None = None,
    signature_method: str | SignatureMethod = HMAC_SHA1,
    realm: str | None = None,
) -> str:
    """Sign a request and return its Authorization header value.

    This is the single entry point for callers that assemble their own
    protocol parameters (nonce, timestamp, token...).

    Args:
        method: HTTP method.
        url: Request URL; its query parameters are signed as well.
        oauth_params: ``oauth_*`` protocol parameters, without signature.
        additional_params: Decoded query/form parameters to sign alongside.
        consumer_secret: Consumer secret, or RSA private key for RSA-SHA1.
        token_secret: Request or access token secret, if any.
        signature_method: Signature method name or instance.
        realm: Optional header realm.

    Returns:
        The Authorization header value.
    """
    signer = get_signature_method(signature_method)
    oauth = dict(oauth_params)
    oauth["oauth_signature_method"] = signer.name
    oauth.pop("oauth_signature", None)

    url, query = _split_query(url)
    params = collect(oauth, query=query)
    params.extend(to_pairs(additional_params))

    base_string = build_base_string(method, url, params)
    oauth["oauth_signature"] = signer.calculate_signature(
        base_string, consumer_secret, token_secret
    )
    return build_header(oauth, realm=realm)


class OAuth1Signer:
    """Signs requests using OAuth1.

    Supports both two-legged (no user tokens) and three-legged (with user tokens)
    OAuth1 authentication. Nonce and timestamp sources are injectable so
    signatures can be reproduced exactly.
    """

    def __init__(
        self,
        credentials: Credentials,
        token: Token | None = None,
        signature_method: str | SignatureMethod = HMAC_SHA1,
        clock: Callable[[], float] | None = None,
        nonce_factory: Callable[[], str] | None = None,
        realm: str | None = None,
    ) -> None:
        """Initialize the OAuth1 signer.

        Args:
            credentials: Consumer key and secret.
            token: Optional request or access token for 3-legged authentication.
            signature_method: ``HMAC-SHA1``, ``RSA-SHA1`` or ``PLAINTEXT``.
            clock: Returns the current unix time; defaults to ``time.time``.
            nonce_factory: Returns a fresh nonce; defaults to 32 random hex chars.
            realm: Optional realm for the Authorization header.
        """
        self._credentials = credentials
        self._token = token
        self._signature_method = get_signature_method(signature_method)
        self._clock = clock or time.time
        self._nonce_factory = nonce_factory or self._generate_nonce
        self._realm = realm

    @property
    def credentials(self) -> Credentials:
        return self._credentials

    @property
    def token(self) -> Token | None:
        return self._token

    @property
    def signature_method(self) -> SignatureMethod:
        return self._signature_method

    def with_token(self, token: Token | None) -> "OAuth1Signer":
        """Return a signer sharing this configuration but another token."""
        return OAuth1Signer(
            self._credentials,
            token=token,
            signature_method=self._signature_method,
            clock=self._clock,
            nonce_factory=self._nonce_factory,
            realm=self._realm,
        )

    @staticmethod
    def _generate_nonce() -> str:
        """Generate a unique nonce for the request.

        Returns:
            A random 32-character hex string.
        """
        return secrets.token_hex(16)

    def generate_nonce_timestamp(self) -> NonceTimestamp:
        return NonceTimestamp(nonce=self._nonce_factory(), timestamp=int(self._clock()))

    def oauth_parameters(
        self,
        callback: str | None = None,
        verifier: str | None = None,
    ) -> dict[str, str]:
        """Generate the protocol parameters for one request (fresh nonce)."""
        return oauth_protocol_parameters(
            consumer_key=self._credentials.consumer_key,
            signature_method=self._signature_method.name,
            nonce_timestamp=self.generate_nonce_timestamp(),
            token=self._token.value if self._token else None,
            callback=callback,
            verifier=verifier,
        )

    def collect_parameters(
        self,
        url: str,
        oauth_params: Mapping[str, str],
        body: ParameterSource | bytes = None,
        content_type: str | None = None,
        additional: ParameterSource = None,
    ) -> ParameterSet:
        """Collect protocol, query, form-body and extra parameters."""
        _, query = _split_query(url)
        params = collect(oauth_params, query=query, body=body, content_type=content_type)
        params.extend(to_pairs(additional))
        return params

    def signature_base_string(
        self,
        method: str,
        url: str,
        oauth_params: Mapping[str, str],
        body: ParameterSource | bytes = None,
        content_type: str | None = None,
        additional: ParameterSource = None,
    ) -> str:
        params = self.collect_parameters(url, oauth_params, body, content_type, additional)
        return build_base_string(method, url, params)

    def _token_secret(self) -> str | None:
        return self._token.secret if self._token else None

    def sign_parameters(
        self,
        method: str,
        url: str,
        body: ParameterSource | bytes = None,
        content_type: str | None = None,
        callback: str | None = None,
        verifier: str | None = None,
        additional: ParameterSource = None,
    ) -> dict[str, str]:
        """Generate OAuth1 signed protocol parameters for a request.

        Args:
            method: HTTP method.
            url: The request URL (query parameters are signed).
            body: Request body; signed only when form-encoded.
            content_type: Content-Type of the body.
            callback: ``oauth_callback`` to include and sign.
            verifier: ``oauth_verifier`` to include and sign.
            additional: Extra decoded parameters sent outside the header.

        Returns:
            Protocol parameters including ``oauth_signature``.
        """
        oauth_params = self.oauth_parameters(callback=callback, verifier=verifier)
        base_string = self.signature_base_string(
            method, url, oauth_params, body, content_type, additional
        )
        oauth_params["oauth_signature"] = self._signature_method.calculate_signature(
            base_string,
            self._credentials.consumer_secret,
            self._token_secret(),
        )
        return oauth_params

    def authorization_header(
        self,
        method: str,
        url: str,
        body: ParameterSource | bytes = None,
        content_type: str | None = None,
        callback: str | None = None,
        verifier: str | None = None,
        additional: ParameterSource = None,
    ) -> str:
        """Sign a request and build its Authorization header value."""
        oauth_params = self.sign_parameters(
            method, url, body, content_type, callback, verifier, additional
        )
        return build_header(oauth_params, realm=self._realm)

    def verify(
        self,
        method: str,
        url: str,
        header: str,
        body: ParameterSource | bytes = None,
        content_type: str | None = None,
    ) -> bool:
        """Check a signed Authorization header against this signer's secrets.

        For RSA-SHA1 the consumer secret slot may hold either the private key
        or the matching public key.
        """
        oauth_params = parse_header(header)
        oauth_params.pop("realm", None)
        signature = oauth_params.pop("oauth_signature", None)
        if signature is None:
            return False

        method_name = oauth_params.get("oauth_signature_method", self._signature_method.name)
        signature_method = get_signature_method(method_name)
        base_string = self.signature_base_string(
            method, url, oauth_params, body, content_type
        )
        return signature_method.verify_signature(
            base_string,
            self._credentials.consumer_secret,
            self._token_secret(),
            signature,
        )


class OAuth1Auth(httpx.Auth):
    """httpx authentication flow that signs every outgoing request.

    The query string and, for form-encoded requests, the body take part in
    the signature; the result is set as the ``Authorization`` header.
    """

    requires_request_body = True

    def __init__(self, signer: OAuth1Signer) -> None:
        self._signer = signer

    @property
    def signer(self) -> OAuth1Signer:
        return self._signer

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        request.headers["Authorization"] = self._signer.authorization_header(
            request.method,
            str(request.url),
            body=request.content,
            content_type=request.headers.get("Content-Type"),
        )
        yield request
