# Provider Registry — OAuth 2.0 endpoints, credentials and scopes per provider.
# Created: 2026-10-02
#
# Endpoints and scopes are fixed here; credentials come from Settings. The
# registry is built once at startup and never mutated.

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from authrelay.config import Settings
from authrelay.errors import ProviderNotConfiguredError, UnknownProviderError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProviderConfig:
    """Static configuration for one OAuth provider."""

    id: str
    authorize_url: str
    token_url: str
    scopes: tuple[str, ...] = ()
    client_id: str | None = None
    client_secret: str | None = None
    extra_authorize_params: Mapping[str, str] = field(default_factory=dict)

    @property
    def can_start(self) -> bool:
        return bool(self.client_id)

    @property
    def can_exchange(self) -> bool:
        return bool(self.client_id and self.client_secret)


# Endpoint table: provider id → (authorize_url, token_url, scopes, extra params)
PROVIDERS: dict[str, dict] = {
    "spotify": {
        "authorize_url": "https://accounts.spotify.com/authorize",
        "token_url": "https://accounts.spotify.com/api/token",
        "scopes": (
            "user-read-playback-state",
            "user-modify-playback-state",
            "user-read-currently-playing",
            "playlist-read-private",
            "playlist-modify-private",
            "playlist-modify-public",
        ),
    },
    "google": {
        "authorize_url": "https://accounts.google.com/o/oauth2/v2/auth",
        "token_url": "https://oauth2.googleapis.com/token",
        "scopes": ("openid", "email", "profile"),
        # Google only returns a refresh token for offline access with consent
        "extra_authorize_params": {"access_type": "offline", "prompt": "consent"},
    },
    "github": {
        "authorize_url": "https://github.com/login/oauth/authorize",
        "token_url": "https://github.com/login/oauth/access_token",
        "scopes": ("read:user", "user:email"),
    },
}


class ProviderRegistry(Mapping[str, ProviderConfig]):
    """Read-only mapping of provider id → ProviderConfig."""

    def __init__(self, providers: Mapping[str, ProviderConfig]):
        self._providers = MappingProxyType(dict(providers))

    @classmethod
    def from_settings(cls, settings: Settings) -> ProviderRegistry:
        """Combine the endpoint table with credentials from *settings*."""
        providers = {}
        for provider_id, endpoints in PROVIDERS.items():
            providers[provider_id] = ProviderConfig(
                id=provider_id,
                authorize_url=endpoints["authorize_url"],
                token_url=endpoints["token_url"],
                scopes=tuple(endpoints.get("scopes", ())),
                client_id=getattr(settings, f"{provider_id}_client_id", None),
                client_secret=getattr(settings, f"{provider_id}_client_secret", None),
                extra_authorize_params=MappingProxyType(
                    dict(endpoints.get("extra_authorize_params", {}))
                ),
            )
        configured = sorted(p.id for p in providers.values() if p.can_start)
        logger.info("OAuth providers configured: %s", ", ".join(configured) or "none")
        return cls(providers)

    def __getitem__(self, provider_id: str) -> ProviderConfig:
        return self._providers[provider_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._providers)

    def __len__(self) -> int:
        return len(self._providers)

    def lookup(self, provider_id: str) -> ProviderConfig:
        """Return the provider or raise UnknownProviderError."""
        provider = self._providers.get(provider_id)
        if provider is None:
            raise UnknownProviderError(f"Unknown OAuth provider: {provider_id}")
        return provider

    def for_start(self, provider_id: str) -> ProviderConfig:
        """Return a provider that has a client id (required to build the authorize URL)."""
        provider = self.lookup(provider_id)
        if not provider.can_start:
            raise ProviderNotConfiguredError(f"{provider_id} client id is not configured")
        return provider

    def for_exchange(self, provider_id: str) -> ProviderConfig:
        """Return a provider that has a client secret (required for token grants)."""
        provider = self.lookup(provider_id)
        if not provider.can_exchange:
            raise ProviderNotConfiguredError(f"{provider_id} client secret is not configured")
        return provider
