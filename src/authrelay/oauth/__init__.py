# OAuth relay: provider registry, session store, token exchange and the flow itself.

from authrelay.oauth.exchange import TokenExchangeClient
from authrelay.oauth.models import OAuthSession, SessionStatus, TokenBundle
from authrelay.oauth.providers import ProviderConfig, ProviderRegistry
from authrelay.oauth.relay import OAuthRelay, PollResult
from authrelay.oauth.sessions import SessionStore

__all__ = [
    "OAuthRelay",
    "OAuthSession",
    "PollResult",
    "ProviderConfig",
    "ProviderRegistry",
    "SessionStatus",
    "SessionStore",
    "TokenBundle",
    "TokenExchangeClient",
]
