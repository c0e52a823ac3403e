"""Pytest fixtures for OAuth1 MCP tests."""

import base64

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from oauth1_mcp.config import Settings
from oauth1_mcp.models import Credentials

REQUEST_TOKEN_URL = "https://api.example.com/oauth/request_token"
AUTHORIZE_URL = "https://example.com/authorize?oauth_token={request_token}"
ACCESS_TOKEN_URL = "https://api.example.com/oauth/access_token"
API_BASE_URL = "https://api.example.com/1"

FIXED_TIMESTAMP = 1191242096
FIXED_NONCE = "kllo9940pd9333jh"


@pytest.fixture
def settings() -> Settings:
    """Return a Settings object with test credentials and endpoints.

    Returns:
        Settings object configured with test OAuth1 credentials.
    """
    return Settings(
        consumer_key="consumer_key",
        consumer_secret="consumer_secret",
        request_token_url=REQUEST_TOKEN_URL,
        authorize_url=AUTHORIZE_URL,
        access_token_url=ACCESS_TOKEN_URL,
        api_base_url=API_BASE_URL,
    )


@pytest.fixture
def credentials(settings: Settings) -> Credentials:
    return settings.credentials()


@pytest.fixture
def fixed_clock():
    """Clock returning a constant unix timestamp."""
    return lambda: FIXED_TIMESTAMP


@pytest.fixture
def fixed_nonce():
    """Nonce factory returning a constant nonce."""
    return lambda: FIXED_NONCE


@pytest.fixture(scope="session")
def rsa_private_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def rsa_private_der_b64(rsa_private_key) -> str:
    """PKCS#8 DER private key, base64-wrapped."""
    der = rsa_private_key.private_bytes(
        serialization.Encoding.DER,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    )
    return base64.b64encode(der).decode("ascii")


@pytest.fixture(scope="session")
def rsa_private_pem(rsa_private_key) -> str:
    """PKCS#1 ("BEGIN RSA PRIVATE KEY") PEM private key."""
    return rsa_private_key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.TraditionalOpenSSL,
        serialization.NoEncryption(),
    ).decode("ascii")


@pytest.fixture(scope="session")
def rsa_public_der_b64(rsa_private_key) -> str:
    """SubjectPublicKeyInfo DER public key, base64-wrapped."""
    der = rsa_private_key.public_key().public_bytes(
        serialization.Encoding.DER,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return base64.b64encode(der).decode("ascii")


@pytest.fixture(scope="session")
def rsa_public_pem(rsa_private_key) -> str:
    return rsa_private_key.public_key().public_bytes(
        serialization.Encoding.PEM,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode("ascii")
