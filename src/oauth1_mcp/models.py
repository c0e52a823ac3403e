"""
Pydantic models for OAuth1 credentials, tokens and signing inputs.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict

# ============================================================================
# Credential Models
# ============================================================================


class Credentials(BaseModel):
    """Consumer key and secret issued by the provider.

    For RSA-SHA1 the ``consumer_secret`` slot carries the encoded private key.
    """

    model_config = ConfigDict(frozen=True)

    consumer_key: str
    consumer_secret: str


# ============================================================================
# Token Models
# ============================================================================


class Token(BaseModel):
    """Model for an OAuth1 request token or access token."""

    model_config = ConfigDict(frozen=True)

    value: str
    secret: str | None = None

    @classmethod
    def from_response(cls, data: dict[str, Any]) -> "Token":
        """Build a token from a parsed token-endpoint response body.

        Args:
            data: Decoded form fields, e.g. from ``parse_token_response``.

        Returns:
            The token carried in ``oauth_token`` / ``oauth_token_secret``.
        """
        return cls(value=data["oauth_token"], secret=data.get("oauth_token_secret"))


class AuthorizedRequestToken(BaseModel):
    """A request token plus the verifier returned after user authorization."""

    model_config = ConfigDict(frozen=True)

    token: Token
    verifier: str

    @property
    def value(self) -> str:
        return self.token.value

    @property
    def secret(self) -> str | None:
        return self.token.secret


class StoredToken(BaseModel):
    """Model for a persisted access token (owned by the caller's store)."""

    token: Token
    created_at: float | None = None


# ============================================================================
# Signing Models
# ============================================================================


class NonceTimestamp(BaseModel):
    """Nonce and timestamp generated fresh for each signed request."""

    model_config = ConfigDict(frozen=True)

    nonce: str
    timestamp: int
