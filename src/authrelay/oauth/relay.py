# OAuth Relay Flow — start / callback / poll / refresh.
# Created: 2026-10-03
#
# The browser half of the flow (start, callback) and the headless client
# (poll) never talk to each other; they meet on the shared state token.
#
#   absent ──start──▶ pending ──callback──▶ exchanging ──ok──▶ complete ──poll──▶ absent
#                        │                      │
#                        └──────────────────────┴──failed / TTL exceeded──▶ absent

from __future__ import annotations

import logging
import urllib.parse
from dataclasses import dataclass

from authrelay.errors import (
    MissingParameterError,
    ProviderDeniedError,
    RelayError,
    SessionExpiredError,
    SessionNotFoundError,
    UnknownStateError,
)
from authrelay.oauth.exchange import TokenExchangeClient
from authrelay.oauth.models import OAuthSession, SessionStatus, TokenBundle
from authrelay.oauth.providers import ProviderRegistry
from authrelay.oauth.sessions import SessionStore, short_state

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PollResult:
    """Outcome of a poll: either still pending, or the tokens (consumed)."""

    status: SessionStatus
    tokens: TokenBundle | None = None

    @property
    def pending(self) -> bool:
        return self.status is SessionStatus.PENDING


class OAuthRelay:
    """Relays an authorization-code flow to a client that can only poll."""

    def __init__(
        self,
        registry: ProviderRegistry,
        store: SessionStore,
        exchanger: TokenExchangeClient,
        redirect_uri: str,
    ):
        self.registry = registry
        self.store = store
        self.exchanger = exchanger
        self.redirect_uri = redirect_uri

    async def start(self, provider_id: str, state: str) -> str:
        """Register a pending session and return the provider authorize URL.

        Raises:
            UnknownProviderError: provider id not in the registry.
            ProviderNotConfiguredError: provider has no client id.
            MissingParameterError: empty state.
        """
        provider = self.registry.for_start(provider_id)
        if not state:
            raise MissingParameterError("state is required")

        await self.store.purge_expired()
        await self.store.put(state, OAuthSession(state=state, provider=provider.id))

        params = {
            "client_id": provider.client_id,
            "response_type": "code",
            "redirect_uri": self.redirect_uri,
            "scope": " ".join(provider.scopes),
            "state": state,
        }
        params.update(provider.extra_authorize_params)

        logger.info("OAuth flow started for %s (state %s)", provider.id, short_state(state))
        return f"{provider.authorize_url}?{urllib.parse.urlencode(params)}"

    async def callback(
        self,
        code: str,
        state: str,
        error: str = "",
        error_description: str = "",
    ) -> None:
        """Complete the session for *state* by exchanging *code*.

        The session is claimed before the exchange, so a reloaded or
        prefetched callback for the same state never spends the code twice.
        A failed exchange or a provider error deletes the session; the
        client's next poll then reports not_found and it has to start over.
        """
        if not state:
            raise MissingParameterError("Missing state parameter")

        session = await self.store.get(state)
        if session is None or session.is_expired(self.store.ttl):
            raise UnknownStateError("Unknown or expired authorization request")
        if session.status is SessionStatus.COMPLETE:
            # Reloaded callback page; the code was already spent
            raise UnknownStateError("Authorization request already completed")
        if session.status is SessionStatus.EXCHANGING:
            raise UnknownStateError("Authorization request already in progress")

        if error:
            # User denied consent, or the provider refused the request
            await self.store.delete(state, SessionStatus.PENDING)
            logger.info(
                "%s returned %s (state %s)", session.provider, error, short_state(state)
            )
            raise ProviderDeniedError(error_description or error, error=error)

        if not code:
            raise MissingParameterError("Missing authorization code")

        if not await self.store.claim(state):
            raise UnknownStateError("Authorization request already in progress")

        try:
            provider = self.registry.for_exchange(session.provider)
            tokens = await self.exchanger.exchange_code(provider, code, self.redirect_uri)
        except RelayError:
            await self.store.delete(state, SessionStatus.EXCHANGING)
            raise

        if not await self.store.complete(state, tokens):
            raise UnknownStateError("Authorization request expired during token exchange")
        logger.info("OAuth flow complete for %s (state %s)", session.provider, short_state(state))

    async def poll(self, state: str) -> PollResult:
        """Report the session status; hands out the tokens exactly once."""
        session = await self.store.consume(state)
        if session is None:
            raise SessionNotFoundError()
        if session.is_expired(self.store.ttl):
            raise SessionExpiredError()
        if session.status is not SessionStatus.COMPLETE:
            # Still waiting on the browser, or the code exchange is running
            return PollResult(status=SessionStatus.PENDING)

        logger.info("Tokens delivered for %s (state %s)", session.provider, short_state(state))
        return PollResult(status=SessionStatus.COMPLETE, tokens=session.tokens)

    async def refresh(self, provider_id: str, refresh_token: str) -> TokenBundle:
        """Refresh an access token on behalf of the client. Stateless."""
        provider = self.registry.for_exchange(provider_id)
        if not refresh_token:
            raise MissingParameterError("refresh_token is required")
        return await self.exchanger.refresh(provider, refresh_token)
