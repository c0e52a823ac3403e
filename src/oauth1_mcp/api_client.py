"""Async HTTP client that signs every API call with OAuth1."""

import logging
from typing import Any

import httpx

from .auth import OAuth1Auth, OAuth1Signer
from .config import Settings
from .exceptions import APIError, UserNotAuthenticatedError
from .models import Token

logger = logging.getLogger(__name__)


class OAuth1ApiClient:
    """Client for calling a provider API on behalf of a user.

    Requests are signed by ``OAuth1Auth``; relative URLs resolve against the
    configured API base URL. Supports async context manager protocol.
    """

    def __init__(
        self,
        settings: Settings,
        access_token: Token | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the API client.

        Args:
            settings: Application settings containing credentials.
            access_token: Optional access token for 3-legged OAuth authentication.
            client: HTTP client to use; one is created when omitted.
        """
        self._settings = settings
        self._access_token = access_token
        self._signer = OAuth1Signer(
            settings.credentials(),
            token=access_token,
            signature_method=settings.signature_method,
        )
        self._auth = OAuth1Auth(self._signer)
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient()

    @property
    def is_user_authenticated(self) -> bool:
        """Check if client has user authentication.

        Returns:
            True if an access token is configured, False otherwise.
        """
        return self._access_token is not None

    @property
    def signer(self) -> OAuth1Signer:
        return self._signer

    def require_user_auth(self) -> None:
        """Raise an error if user authentication is not configured.

        Raises:
            UserNotAuthenticatedError: If no access token is configured.
        """
        if not self.is_user_authenticated:
            raise UserNotAuthenticatedError(
                "This operation requires user authentication. "
                "Please connect your account first."
            )

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "OAuth1ApiClient":
        """Enter the async context manager."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit the async context manager."""
        await self.close()

    def _resolve(self, url: str) -> str:
        if url.startswith(("http://", "https://")):
            return url
        if not self._settings.api_base_url:
            raise APIError(f"Relative URL {url!r} requires api_base_url to be configured")
        return f"{self._settings.api_base_url.rstrip('/')}/{url.lstrip('/')}"

    async def request(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
        json: Any = None,
    ) -> httpx.Response:
        """Make a signed request.

        Args:
            method: HTTP method.
            url: Absolute URL, or a path relative to ``api_base_url``.
            params: Query parameters (signed).
            data: Form fields (signed).
            json: JSON body (not signed).

        Returns:
            The successful response.

        Raises:
            APIError: If the request fails or returns an error status.
        """
        target = self._resolve(url)
        logger.debug("Signed %s %s", method.upper(), target)
        try:
            response = await self._client.request(
                method.upper(),
                target,
                params=params,
                data=data,
                json=json,
                auth=self._auth,
            )
            response.raise_for_status()
            return response

        except httpx.HTTPStatusError as e:
            raise APIError(
                f"HTTP error {e.response.status_code}: {e.response.text}",
                status_code=e.response.status_code,
            ) from e

        except httpx.RequestError as e:
            raise APIError(f"Request error: {str(e)}") from e

    async def get(self, url: str, params: dict[str, Any] | None = None) -> httpx.Response:
        return await self.request("GET", url, params=params)

    async def post(
        self,
        url: str,
        data: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> httpx.Response:
        return await self.request("POST", url, params=params, data=data)
