"""OAuth 1.0a 3-legged token exchange."""

import logging
import time
import urllib.parse
from collections.abc import Callable
from enum import Enum
from typing import Any

import httpx

from .auth import OAuth1Signer
from .config import Settings
from .encoding import FORM_CONTENT_TYPE, parse_form, percent_encode
from .exceptions import EncodingError, TokenExchangeError
from .models import AuthorizedRequestToken, Credentials, StoredToken, Token
from .parameters import ParameterSource, to_pairs
from .signature import HMAC_SHA1, SignatureMethod
from .token_store import TokenStore

logger = logging.getLogger(__name__)

REQUEST_TOKEN_PLACEHOLDER = "{request_token}"


class OAuth1Version(str, Enum):
    """Protocol revision spoken with the provider."""

    CORE_10 = "1.0"
    CORE_10_REVISION_A = "1.0a"


class ExchangeState(str, Enum):
    """Progress of a single 3-legged handshake."""

    NOT_STARTED = "not_started"
    REQUEST_TOKEN_FETCHED = "request_token_fetched"
    USER_AUTHORIZED = "user_authorized"
    ACCESS_TOKEN_OBTAINED = "access_token_obtained"


def parse_token_response(text: str) -> dict[str, str]:
    """Parse a form-encoded token endpoint body.

    Provider-specific extras are kept; for repeated names the first value wins.
    """
    fields: dict[str, str] = {}
    for name, value in parse_form(text):
        fields.setdefault(name, value)
    return fields


class OAuth1Template:
    """Drives the provider's request-token, authorize and access-token endpoints.

    Holds only immutable configuration and an HTTP client, so one template can
    serve any number of concurrent handshakes. Progress through a handshake is
    tracked by ``TokenExchange``.
    """

    def __init__(
        self,
        credentials: Credentials,
        request_token_url: str,
        authorize_url: str,
        access_token_url: str,
        authenticate_url: str | None = None,
        version: OAuth1Version | str = OAuth1Version.CORE_10_REVISION_A,
        signature_method: str | SignatureMethod = HMAC_SHA1,
        client: httpx.AsyncClient | None = None,
        clock: Callable[[], float] | None = None,
        nonce_factory: Callable[[], str] | None = None,
    ) -> None:
        """Initialize the template.

        Args:
            credentials: Consumer key and secret.
            request_token_url: Request-token endpoint (POST).
            authorize_url: User authorization URL; may contain ``{request_token}``.
            access_token_url: Access-token endpoint (POST).
            authenticate_url: Optional "sign in with" URL, same templating.
            version: ``1.0`` or ``1.0a``.
            signature_method: Signature method for token endpoint requests.
            client: HTTP client to use; one is created when omitted.
            clock: Injectable unix-time source for signing.
            nonce_factory: Injectable nonce source for signing.
        """
        self._request_token_url = request_token_url
        self._authorize_url = authorize_url
        self._authenticate_url = authenticate_url
        self._access_token_url = access_token_url
        self._version = OAuth1Version(version)
        self._signer = OAuth1Signer(
            credentials,
            signature_method=signature_method,
            clock=clock,
            nonce_factory=nonce_factory,
        )
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient()

    @classmethod
    def from_settings(
        cls, settings: Settings, client: httpx.AsyncClient | None = None
    ) -> "OAuth1Template":
        """Create a template from application settings."""
        return cls(
            settings.credentials(),
            request_token_url=settings.request_token_url,
            authorize_url=settings.authorize_url,
            access_token_url=settings.access_token_url,
            authenticate_url=settings.authenticate_url,
            version=settings.oauth_version,
            signature_method=settings.signature_method,
            client=client,
        )

    @property
    def version(self) -> OAuth1Version:
        return self._version

    async def close(self) -> None:
        """Close the HTTP client if this template created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "OAuth1Template":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def fetch_request_token(
        self,
        callback_url: str | None = "oob",
        additional_params: ParameterSource = None,
    ) -> Token:
        """Step 1: Get a request token from the provider.

        Args:
            callback_url: Callback URL or "oob" for out-of-band (CLI apps).
            additional_params: Extra form parameters for the provider.

        Returns:
            Request token for the authorization step.

        Raises:
            TokenExchangeError: If the request fails.
        """
        callback = None
        if self._version is OAuth1Version.CORE_10_REVISION_A:
            callback = callback_url or "oob"
        return await self._exchange_for_token(
            "request token",
            self._request_token_url,
            self._signer,
            callback=callback,
            additional_params=additional_params,
        )

    def build_authorize_url(
        self, request_token_value: str, callback_url: str | None = None
    ) -> str:
        """Step 2: Generate the authorization URL for the user.

        No request is made and nothing is signed.

        Args:
            request_token_value: The request token from step 1.
            callback_url: Only used for OAuth 1.0, where the callback
                travels on this URL.

        Returns:
            URL for the user to visit to authorize the application.
        """
        return self._build_oauth_url(self._authorize_url, request_token_value, callback_url)

    def build_authenticate_url(
        self, request_token_value: str, callback_url: str | None = None
    ) -> str:
        """Build the "sign in with" URL, falling back to the authorize URL."""
        if not self._authenticate_url:
            return self.build_authorize_url(request_token_value, callback_url)
        return self._build_oauth_url(
            self._authenticate_url, request_token_value, callback_url
        )

    async def exchange_for_access_token(
        self,
        authorized: AuthorizedRequestToken,
        additional_params: ParameterSource = None,
    ) -> Token:
        """Step 3: Exchange the authorized request token for an access token.

        The request token's secret is the token-secret half of the signing key.

        Raises:
            TokenExchangeError: If the exchange fails.
        """
        verifier = None
        if self._version is OAuth1Version.CORE_10_REVISION_A:
            verifier = authorized.verifier
        return await self._exchange_for_token(
            "access token",
            self._access_token_url,
            self._signer.with_token(authorized.token),
            verifier=verifier,
            additional_params=additional_params,
        )

    def _build_oauth_url(
        self, template: str, request_token_value: str, callback_url: str | None
    ) -> str:
        token = percent_encode(request_token_value)
        if REQUEST_TOKEN_PLACEHOLDER in template:
            url = template.replace(REQUEST_TOKEN_PLACEHOLDER, token)
        else:
            separator = "&" if "?" in template else "?"
            url = f"{template}{separator}oauth_token={token}"

        if self._version is OAuth1Version.CORE_10 and callback_url:
            separator = "&" if "?" in url else "?"
            url = f"{url}{separator}oauth_callback={percent_encode(callback_url)}"
        return url

    async def _exchange_for_token(
        self,
        step: str,
        token_url: str,
        signer: OAuth1Signer,
        callback: str | None = None,
        verifier: str | None = None,
        additional_params: ParameterSource = None,
    ) -> Token:
        body = to_pairs(additional_params)
        headers = {
            "Authorization": signer.authorization_header(
                "POST",
                token_url,
                body=body,
                content_type=FORM_CONTENT_TYPE,
                callback=callback,
                verifier=verifier,
            )
        }
        content = None
        if body:
            headers["Content-Type"] = FORM_CONTENT_TYPE
            content = urllib.parse.urlencode(body)

        logger.debug("Requesting %s from %s", step, token_url)
        try:
            response = await self._client.post(token_url, headers=headers, content=content)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.warning(
                "%s request to %s failed with HTTP %s",
                step.capitalize(),
                token_url,
                e.response.status_code,
            )
            raise TokenExchangeError(
                f"Failed to get {step}: HTTP {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.RequestError as e:
            logger.warning("%s request to %s failed: %s", step.capitalize(), token_url, e)
            raise TokenExchangeError(f"Failed to get {step}: {str(e)}") from e

        # Parse the response (form-encoded: oauth_token=xxx&oauth_token_secret=yyy)
        try:
            response_data = parse_token_response(response.text)
        except EncodingError as e:
            raise TokenExchangeError(
                f"Invalid response from {step} endpoint: {e}",
                status_code=response.status_code,
            ) from e
        if not response_data.get("oauth_token") or "oauth_token_secret" not in response_data:
            raise TokenExchangeError(
                f"Invalid response from {step} endpoint: {response.text}",
                status_code=response.status_code,
            )

        logger.info("Obtained %s from %s", step, token_url)
        return Token.from_response(response_data)


class TokenExchange:
    """State of one 3-legged handshake.

    NOT_STARTED -> REQUEST_TOKEN_FETCHED -> USER_AUTHORIZED ->
    ACCESS_TOKEN_OBTAINED. Create one instance per user handshake; instances
    share nothing but the template's immutable configuration.
    """

    def __init__(self, template: OAuth1Template) -> None:
        self._template = template
        self._state = ExchangeState.NOT_STARTED
        self._request_token: Token | None = None
        self._authorized: AuthorizedRequestToken | None = None
        self._access_token: Token | None = None

    @classmethod
    def resume(cls, template: OAuth1Template, request_token: Token) -> "TokenExchange":
        """Rebuild an exchange from a request token the caller kept between steps."""
        exchange = cls(template)
        exchange._request_token = request_token
        exchange._state = ExchangeState.REQUEST_TOKEN_FETCHED
        return exchange

    @property
    def state(self) -> ExchangeState:
        return self._state

    @property
    def request_token(self) -> Token | None:
        return self._request_token

    @property
    def access_token(self) -> Token | None:
        return self._access_token

    def _require(self, *states: ExchangeState) -> None:
        if self._state not in states:
            expected = ", ".join(state.value for state in states)
            raise TokenExchangeError(
                f"Invalid handshake step: state is {self._state.value}, expected {expected}"
            )

    def _transition(self, state: ExchangeState) -> None:
        logger.debug("Token exchange %s -> %s", self._state.value, state.value)
        self._state = state

    async def fetch_request_token(self, callback_url: str | None = "oob") -> Token:
        """Fetch a request token; NOT_STARTED -> REQUEST_TOKEN_FETCHED."""
        self._require(ExchangeState.NOT_STARTED)
        token = await self._template.fetch_request_token(callback_url)
        self._request_token = token
        self._transition(ExchangeState.REQUEST_TOKEN_FETCHED)
        return token

    def build_authorize_url(
        self,
        request_token_value: str | None = None,
        callback_url: str | None = None,
    ) -> str:
        """Build the user authorization URL for this handshake's request token."""
        if request_token_value is None:
            if self._request_token is None:
                raise TokenExchangeError(
                    "No request token found. Please start the authentication flow first."
                )
            request_token_value = self._request_token.value
        return self._template.build_authorize_url(request_token_value, callback_url)

    def authorize(self, verifier: str) -> AuthorizedRequestToken:
        """Record the verifier; REQUEST_TOKEN_FETCHED -> USER_AUTHORIZED."""
        self._require(ExchangeState.REQUEST_TOKEN_FETCHED)
        self._authorized = AuthorizedRequestToken(token=self._request_token, verifier=verifier)
        self._transition(ExchangeState.USER_AUTHORIZED)
        return self._authorized

    async def exchange_for_access_token(
        self, authorized: AuthorizedRequestToken | None = None
    ) -> Token:
        """Exchange the authorized request token; -> ACCESS_TOKEN_OBTAINED.

        An authorized token carried in by the caller is accepted from any state
        except after the access token was already obtained.
        """
        if authorized is None:
            self._require(ExchangeState.USER_AUTHORIZED)
            authorized = self._authorized
        elif self._state is ExchangeState.ACCESS_TOKEN_OBTAINED:
            raise TokenExchangeError("Authorized request token was already exchanged")

        token = await self._template.exchange_for_access_token(authorized)
        self._authorized = authorized
        self._access_token = token
        self._transition(ExchangeState.ACCESS_TOKEN_OBTAINED)
        return token


class OAuthFlowManager:
    """Runs the handshake across separate calls, keeping the request token
    in a token store between step 1 and step 3.
    """

    def __init__(self, template: OAuth1Template, token_store: TokenStore) -> None:
        """Initialize the OAuth flow manager.

        Args:
            template: Endpoint driver for the provider.
            token_store: Token storage for persisting tokens.
        """
        self._template = template
        self._token_store = token_store

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._template.close()

    async def get_request_token(self, callback: str = "oob") -> Token:
        """Step 1: Get a request token and save it for step 3.

        Raises:
            TokenExchangeError: If the request fails.
        """
        exchange = TokenExchange(self._template)
        token = await exchange.fetch_request_token(callback)

        # Save the request token for later use in exchange_for_access_token
        self._token_store.save_request_token(token)
        return token

    def get_authorization_url(self, request_token: Token, callback: str | None = None) -> str:
        """Step 2: Generate the authorization URL for the user."""
        return self._template.build_authorize_url(request_token.value, callback)

    async def exchange_for_access_token(self, verifier: str) -> StoredToken:
        """Step 3: Exchange the verifier for an access token.

        Raises:
            TokenExchangeError: If the exchange fails or no request token is found.
        """
        # Load the request token saved in step 1
        request_token = self._token_store.load_request_token()
        if not request_token:
            raise TokenExchangeError(
                "No request token found. Please start the authentication flow first."
            )

        exchange = TokenExchange.resume(self._template, request_token)
        exchange.authorize(verifier)
        access_token = await exchange.exchange_for_access_token()

        stored = StoredToken(token=access_token, created_at=time.time())

        # Save the access token and clear the request token
        self._token_store.save_access_token(stored)
        self._token_store.clear_request_token()
        return stored
