# Settings — environment-driven configuration for the relay and gateway.
# Created: 2026-10-02
#
# Built once at process start and handed to create_app(); components never
# read the environment themselves.

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """authrelay configuration.

    Every field can be set through an ``AUTHRELAY_``-prefixed environment
    variable (``AUTHRELAY_PUBLIC_URL``, ``AUTHRELAY_SPOTIFY_CLIENT_ID`` ...) or
    a ``.env`` file in the working directory.
    """

    model_config = SettingsConfigDict(
        env_prefix="AUTHRELAY_",
        env_file=".env",
        extra="ignore",
    )

    # Public base URL the providers redirect back to (…/oauth/callback)
    public_url: str = "http://localhost:8080"

    # Headscale orchestrator
    headscale_url: str = "http://localhost:8081"
    headscale_api_key: str | None = None
    registration_secret: str | None = None
    network_domain: str = "headscale.local"

    # OAuth providers
    spotify_client_id: str | None = None
    spotify_client_secret: str | None = None
    google_client_id: str | None = None
    google_client_secret: str | None = None
    github_client_id: str | None = None
    github_client_secret: str | None = None

    session_ttl_seconds: int = Field(default=300, gt=0)
    http_timeout: float = Field(default=15.0, gt=0)
    # Requests per minute per client IP on /register; 0 disables the limiter
    register_rate_limit: int = Field(default=10, ge=0)

    host: str = "127.0.0.1"
    port: int = 8080
    log_level: str = "INFO"

    @field_validator("public_url", "headscale_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator(
        "headscale_api_key",
        "registration_secret",
        "spotify_client_id",
        "spotify_client_secret",
        "google_client_id",
        "google_client_secret",
        "github_client_id",
        "github_client_secret",
        mode="before",
    )
    @classmethod
    def _blank_is_none(cls, v: object) -> object:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def callback_url(self) -> str:
        """Redirect URI registered with every provider."""
        return f"{self.public_url}/oauth/callback"

    @property
    def login_server(self) -> str:
        return f"https://{self.network_domain}"


@lru_cache
def get_settings() -> Settings:
    """Load settings from the environment (cached; ``cache_clear()`` in tests)."""
    return Settings()
