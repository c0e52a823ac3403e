"""Configuration management using pydantic-settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import Credentials


class Settings(BaseSettings):
    """OAuth1 MCP Server settings."""

    model_config = SettingsConfigDict(
        env_prefix="OAUTH1_",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # OAuth1 credentials (consumer_secret holds the private key for RSA-SHA1)
    consumer_key: str
    consumer_secret: str
    signature_method: str = "HMAC-SHA1"

    # "1.0a" signs the callback and verifier; "1.0" passes the callback on
    # the authorize URL instead
    oauth_version: str = "1.0a"

    # Provider endpoints for the 3-legged handshake
    request_token_url: str = ""
    authorize_url: str = ""
    authenticate_url: str | None = None
    access_token_url: str = ""
    callback_url: str = "oob"

    # Optional base URL for relative signed API calls
    api_base_url: str | None = None

    # Token storage: a JSON file, or read-only env vars when use_env_tokens
    token_storage_path: str = "~/.config/oauth1-mcp/tokens.json"
    use_env_tokens: bool = False

    # MCP transport: "stdio" for local clients, "sse" or "streamable-http"
    # for remote ones (host/port come from FASTMCP_HOST and FASTMCP_PORT)
    mcp_transport: str = "stdio"

    log_level: str = "INFO"

    def credentials(self) -> Credentials:
        """Return the consumer credentials."""
        return Credentials(
            consumer_key=self.consumer_key,
            consumer_secret=self.consumer_secret,
        )


def get_settings() -> Settings:
    """Get application settings."""
    return Settings()
