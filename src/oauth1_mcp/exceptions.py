"""Custom exceptions for the OAuth1 signing library and MCP server."""


class OAuth1Error(Exception):
    """Base exception for OAuth1 errors."""

    pass


class EncodingError(OAuth1Error):
    """Raised when a value cannot be represented as UTF-8 for encoding."""

    pass


class CryptoError(OAuth1Error):
    """Raised for unsupported signature methods or unusable key material."""

    pass


class MalformedUrlError(OAuth1Error):
    """Raised when a request URL cannot be parsed or normalized."""

    pass


class TokenExchangeError(OAuth1Error):
    """Raised when a request-token or access-token exchange fails."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class APIError(OAuth1Error):
    """Raised when a signed API call returns an error response."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ConfigurationError(OAuth1Error):
    """Raised when configuration is invalid or missing."""

    pass


class UserNotAuthenticatedError(OAuth1Error):
    """Raised when an operation requires an access token but none is stored."""

    pass
