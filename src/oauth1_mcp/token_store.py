"""Where the server keeps request and access tokens between tool calls."""

import json
import logging
import os
import time
from pathlib import Path
from typing import Any

from .models import StoredToken, Token

logger = logging.getLogger(__name__)

ACCESS_TOKEN_ENV = "OAUTH1_ACCESS_TOKEN"
ACCESS_TOKEN_SECRET_ENV = "OAUTH1_ACCESS_TOKEN_SECRET"


class EnvTokenStore:
    """Read-only store for deployments where the token is provisioned as
    ``OAUTH1_ACCESS_TOKEN`` / ``OAUTH1_ACCESS_TOKEN_SECRET``.

    The handshake cannot run against it; writes raise ``NotImplementedError``.
    """

    def load_access_token(self) -> StoredToken | None:
        value = os.environ.get(ACCESS_TOKEN_ENV)
        secret = os.environ.get(ACCESS_TOKEN_SECRET_ENV)
        if not value or not secret:
            return None
        return StoredToken(token=Token(value=value, secret=secret))

    def save_access_token(self, token: StoredToken) -> None:
        raise NotImplementedError(
            f"Access tokens are read from {ACCESS_TOKEN_ENV} and "
            f"{ACCESS_TOKEN_SECRET_ENV}; they cannot be saved."
        )

    def delete_access_token(self) -> None:
        # the environment is owned by the deployment
        pass

    def save_request_token(self, token: Token) -> None:
        raise NotImplementedError(
            "The OAuth handshake needs writable token storage. Run it locally, "
            f"then set {ACCESS_TOKEN_ENV} and {ACCESS_TOKEN_SECRET_ENV}."
        )

    def load_request_token(self) -> Token | None:
        return None

    def clear_request_token(self) -> None:
        pass

    def has_access_token(self) -> bool:
        return self.load_access_token() is not None


class TokenStore:
    """JSON file holding the access token and an in-flight request token.

    The directory is created ``0700`` and the file written ``0600`` through a
    temp file and rename. An unreadable file counts as empty.
    """

    ACCESS_KEY = "access_token"
    REQUEST_KEY = "request_token"

    def __init__(self, storage_path: str) -> None:
        self._storage_path = Path(os.path.expanduser(storage_path))
        self._ensure_directory()

    @property
    def storage_path(self) -> Path:
        return self._storage_path

    def _ensure_directory(self) -> None:
        directory = self._storage_path.parent
        if not directory.exists():
            directory.mkdir(parents=True, mode=0o700)

    def _read(self) -> dict[str, Any]:
        if not self._storage_path.exists():
            return {}
        try:
            with open(self._storage_path) as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Ignoring unreadable token file %s: %s", self._storage_path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict[str, Any]) -> None:
        self._ensure_directory()
        temp_path = self._storage_path.with_suffix(".tmp")
        with open(temp_path, "w") as f:
            json.dump(data, f, indent=2)
        os.chmod(temp_path, 0o600)
        temp_path.rename(self._storage_path)

    def _put(self, key: str, entry: dict[str, Any]) -> None:
        data = self._read()
        data[key] = entry
        self._write(data)

    def _remove(self, key: str) -> None:
        data = self._read()
        if data.pop(key, None) is not None:
            self._write(data)

    @staticmethod
    def _entry(token: Token) -> dict[str, Any]:
        return {"oauth_token": token.value, "oauth_token_secret": token.secret}

    @staticmethod
    def _token(entry: dict[str, Any] | None) -> Token | None:
        if not entry:
            return None
        return Token(value=entry["oauth_token"], secret=entry.get("oauth_token_secret"))

    def save_access_token(self, stored: StoredToken) -> None:
        entry = self._entry(stored.token)
        entry["created_at"] = stored.created_at or time.time()
        self._put(self.ACCESS_KEY, entry)

    def load_access_token(self) -> StoredToken | None:
        entry = self._read().get(self.ACCESS_KEY)
        token = self._token(entry)
        if token is None:
            return None
        return StoredToken(token=token, created_at=entry.get("created_at"))

    def delete_access_token(self) -> None:
        self._remove(self.ACCESS_KEY)

    def save_request_token(self, token: Token) -> None:
        """Keep the request token from step 1 until the verifier arrives."""
        self._put(self.REQUEST_KEY, self._entry(token))

    def load_request_token(self) -> Token | None:
        return self._token(self._read().get(self.REQUEST_KEY))

    def clear_request_token(self) -> None:
        self._remove(self.REQUEST_KEY)

    def has_access_token(self) -> bool:
        return self.load_access_token() is not None
