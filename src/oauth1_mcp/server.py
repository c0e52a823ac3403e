"""OAuth1 MCP Server implementation using FastMCP."""

import logging
from contextlib import asynccontextmanager
from typing import Any

from mcp.server.fastmcp import FastMCP
from pydantic import ValidationError

from .api_client import OAuth1ApiClient
from .auth import OAuth1Signer
from .config import Settings, get_settings
from .exceptions import (
    APIError,
    ConfigurationError,
    CryptoError,
    EncodingError,
    MalformedUrlError,
    TokenExchangeError,
    UserNotAuthenticatedError,
)
from .oauth_flow import OAuth1Template, OAuthFlowManager
from .token_store import EnvTokenStore, TokenStore

logger = logging.getLogger(__name__)

# Module-level holders for lifespan management
_client: OAuth1ApiClient | None = None
_token_store: TokenStore | EnvTokenStore | None = None
_oauth_flow: OAuthFlowManager | None = None
_settings: Settings | None = None


@asynccontextmanager
async def lifespan(app: Any):
    """Lifespan context manager for the MCP server.

    Creates and manages the API client and OAuth flow lifecycle.
    """
    global _client, _token_store, _oauth_flow, _settings

    try:
        _settings = get_settings()
    except Exception as e:
        raise ConfigurationError(
            f"Failed to load settings. Ensure OAUTH1_CONSUMER_KEY and "
            f"OAUTH1_CONSUMER_SECRET environment variables are set: {e}"
        ) from e

    if _settings.use_env_tokens:
        _token_store = EnvTokenStore()
        _oauth_flow = None  # tokens are provisioned out of band
    else:
        _token_store = TokenStore(_settings.token_storage_path)
        _oauth_flow = OAuthFlowManager(OAuth1Template.from_settings(_settings), _token_store)

    stored = _token_store.load_access_token()
    _client = OAuth1ApiClient(_settings, access_token=stored.token if stored else None)
    logger.info("OAuth1 MCP server started (user connected: %s)", stored is not None)

    try:
        yield
    finally:
        if _client:
            await _client.close()
            _client = None
        if _oauth_flow:
            await _oauth_flow.close()
            _oauth_flow = None
        _token_store = None
        _settings = None


mcp = FastMCP("oauth1", lifespan=lifespan)


def _get_client() -> OAuth1ApiClient:
    """Get the API client from module state."""
    if _client is None:
        raise RuntimeError("OAuth1ApiClient not initialized - server not running")
    return _client


def _get_token_store() -> TokenStore | EnvTokenStore:
    """Get the token store from module state."""
    if _token_store is None:
        raise RuntimeError("TokenStore not initialized - server not running")
    return _token_store


def _get_oauth_flow() -> OAuthFlowManager:
    """Get the OAuthFlowManager from module state."""
    if _oauth_flow is None:
        if _settings is not None and _settings.use_env_tokens:
            raise RuntimeError(
                "OAuth flow not available with environment token storage. "
                "Complete OAuth locally and set OAUTH1_ACCESS_TOKEN and "
                "OAUTH1_ACCESS_TOKEN_SECRET environment variables."
            )
        raise RuntimeError("OAuthFlowManager not initialized - server not running")
    return _oauth_flow


def _get_settings() -> Settings:
    """Get the Settings from module state."""
    if _settings is None:
        raise RuntimeError("Settings not initialized - server not running")
    return _settings


async def _reinitialize_client() -> None:
    """Reinitialize the client with the currently stored access token."""
    global _client

    settings = _get_settings()
    token_store = _get_token_store()

    if _client:
        await _client.close()

    stored = token_store.load_access_token()
    _client = OAuth1ApiClient(settings, access_token=stored.token if stored else None)


# ============================================================================
# Signing Tools
# ============================================================================


@mcp.tool()
async def sign_request(
    method: str,
    url: str,
    params: dict[str, str] | None = None,
    body: str | None = None,
    content_type: str | None = None,
) -> str:
    """Build an OAuth1 Authorization header for a request.

    Signs with the consumer credentials and, when an account is connected,
    the stored access token.

    Args:
        method: HTTP method (e.g., "GET", "POST")
        url: Full request URL, including any query string
        params: Extra query or form parameters that will be sent
        body: Raw request body; signed only when form-encoded
        content_type: Content-Type of the body

    Returns:
        The Authorization header value
    """
    try:
        signer: OAuth1Signer = _get_client().signer
        return signer.authorization_header(
            method, url, body=body, content_type=content_type, additional=params
        )
    except (EncodingError, MalformedUrlError, CryptoError) as e:
        return f"Error signing request: {str(e)}"
    except Exception as e:
        return f"Unexpected error: {str(e)}"


@mcp.tool()
async def call_api(
    method: str,
    url: str,
    params: dict[str, str] | None = None,
) -> str:
    """Call a provider API endpoint with an OAuth1-signed request.

    Args:
        method: HTTP method
        url: Absolute URL, or a path relative to the configured API base URL
        params: Query parameters for GET, form fields otherwise

    Returns:
        Response status and body
    """
    try:
        client = _get_client()
        client.require_user_auth()
        if method.upper() == "GET":
            response = await client.request(method, url, params=params)
        else:
            response = await client.request(method, url, data=params)
        return f"HTTP {response.status_code}\n\n{response.text}"

    except UserNotAuthenticatedError:
        return (
            "Error: No account connected.\n"
            "Use start_authentication to connect your account first."
        )
    except (APIError, CryptoError, MalformedUrlError) as e:
        return f"Error calling API: {str(e)}"
    except Exception as e:
        return f"Unexpected error: {str(e)}"


# ============================================================================
# Authentication Tools
# ============================================================================


@mcp.tool()
async def check_auth_status() -> str:
    """Check if a user account is connected.

    Returns:
        Authentication status message
    """
    try:
        client = _get_client()

        if client.is_user_authenticated:
            return "Connected: An access token is stored and requests are signed with it."
        return (
            "Not connected: No access token is stored.\n"
            "Use start_authentication to connect an account."
        )
    except Exception as e:
        return f"Error checking auth status: {str(e)}"


@mcp.tool()
async def start_authentication() -> str:
    """Start the account connection process.

    Fetches a request token and returns the URL the user must visit to
    authorize it. Afterwards, pass the verification code to
    complete_authentication.

    Returns:
        Instructions with the authorization URL
    """
    try:
        oauth_flow = _get_oauth_flow()
        settings = _get_settings()

        request_token = await oauth_flow.get_request_token(settings.callback_url)
        auth_url = oauth_flow.get_authorization_url(request_token, settings.callback_url)

        return (
            "To connect your account:\n\n"
            f"1. Visit this URL:\n   {auth_url}\n\n"
            "2. Log in and authorize the connection\n\n"
            "3. Copy the verification code shown\n\n"
            "4. Use complete_authentication with the code to finish setup"
        )

    except RuntimeError as e:
        return str(e)
    except TokenExchangeError as e:
        return f"Error starting authentication: {str(e)}"
    except Exception as e:
        return f"Unexpected error: {str(e)}"


@mcp.tool()
async def complete_authentication(verifier: str) -> str:
    """Complete the account connection.

    Args:
        verifier: The verification code from the provider's authorization page

    Returns:
        Success or error message
    """
    try:
        oauth_flow = _get_oauth_flow()

        await oauth_flow.exchange_for_access_token(verifier)
        await _reinitialize_client()

        return "Success! Your account is now connected."

    except RuntimeError as e:
        return str(e)
    except TokenExchangeError as e:
        return f"Error completing authentication: {str(e)}"
    except Exception as e:
        return f"Unexpected error: {str(e)}"


@mcp.tool()
async def disconnect_account() -> str:
    """Disconnect the connected account and forget its stored tokens.

    Returns:
        Confirmation message
    """
    try:
        token_store = _get_token_store()

        token_store.delete_access_token()
        token_store.clear_request_token()

        await _reinitialize_client()

        return (
            "Disconnected: The stored access token has been removed.\n"
            "Use start_authentication to connect again."
        )

    except Exception as e:
        return f"Error disconnecting account: {str(e)}"


# ============================================================================
# Main Entry Point
# ============================================================================


def main() -> None:
    """Run the OAuth1 MCP server."""
    try:
        settings = get_settings()
        level, transport = settings.log_level, settings.mcp_transport
    except ValidationError:
        # missing credentials are reported by the lifespan
        level, transport = "INFO", "stdio"
    # stdout carries the stdio transport
    logging.basicConfig(level=level.upper(), format="%(asctime)s %(name)s %(levelname)s %(message)s")
    mcp.run(transport=transport)


if __name__ == "__main__":
    main()
