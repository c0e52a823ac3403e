"""OAuth 1.0a request signing, token exchange and an MCP server around them."""

from .auth import OAuth1Auth, OAuth1Signer, build_header, parse_header, sign
from .base_string import build_base_string, normalize_parameters, normalize_url
from .encoding import percent_encode
from .exceptions import (
    CryptoError,
    EncodingError,
    MalformedUrlError,
    OAuth1Error,
    TokenExchangeError,
)
from .models import AuthorizedRequestToken, Credentials, NonceTimestamp, Token
from .oauth_flow import ExchangeState, OAuth1Template, OAuth1Version, TokenExchange
from .parameters import ParameterSet, collect
from .signature import HMAC_SHA1, PLAINTEXT, RSA_SHA1, get_signature_method

__version__ = "0.1.0"

__all__ = [
    "HMAC_SHA1",
    "PLAINTEXT",
    "RSA_SHA1",
    "AuthorizedRequestToken",
    "Credentials",
    "CryptoError",
    "EncodingError",
    "ExchangeState",
    "MalformedUrlError",
    "NonceTimestamp",
    "OAuth1Auth",
    "OAuth1Error",
    "OAuth1Signer",
    "OAuth1Template",
    "OAuth1Version",
    "ParameterSet",
    "Token",
    "TokenExchange",
    "TokenExchangeError",
    "build_base_string",
    "build_header",
    "collect",
    "get_signature_method",
    "normalize_parameters",
    "normalize_url",
    "parse_header",
    "percent_encode",
    "sign",
]
