# Session Store — in-memory OAuth sessions keyed by state token, with TTL expiry.
# Created: 2026-10-02
#
# Sessions live only in process memory; nothing survives a restart.
# Each state has its own asyncio.Lock so work on different states never
# serializes; the global lock only guards the lock table itself.

from __future__ import annotations

import asyncio
import logging
import time

from authrelay.oauth.models import OAuthSession, SessionStatus, TokenBundle

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300


def short_state(state: str) -> str:
    """Truncated state token for log lines."""
    return state[:8] + "…" if len(state) > 8 else state


class SessionStore:
    """Concurrent state → OAuthSession mapping.

    Expiry is logical: a session older than ``ttl`` seconds is treated as
    expired the next time it is read, and physically removed by ``consume()``
    or ``purge_expired()``.

    Usage:
        store = SessionStore(ttl=300)
        await store.put("abc", OAuthSession(state="abc", provider="spotify"))
        session = await store.consume("abc")
    """

    def __init__(self, ttl: float = DEFAULT_TTL_SECONDS) -> None:
        self.ttl = ttl
        self._sessions: dict[str, OAuthSession] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._global_lock = asyncio.Lock()

    async def _get_lock(self, state: str) -> asyncio.Lock:
        async with self._global_lock:
            if state not in self._locks:
                self._locks[state] = asyncio.Lock()
            return self._locks[state]

    def _forget_lock(self, state: str) -> None:
        """Drop the lock of a state that no longer has a session, unless held."""
        lock = self._locks.get(state)
        if lock is not None and not lock.locked() and state not in self._sessions:
            del self._locks[state]

    async def put(self, state: str, session: OAuthSession) -> None:
        """Insert or replace the session for *state*."""
        lock = await self._get_lock(state)
        async with lock:
            self._sessions[state] = session

    async def get(self, state: str) -> OAuthSession | None:
        """Return the stored session, expired or not. None if absent."""
        if state not in self._sessions:
            return None
        lock = await self._get_lock(state)
        async with lock:
            return self._sessions.get(state)

    async def delete(self, state: str, status: SessionStatus | None = None) -> None:
        """Remove the session for *state*. Deleting an absent state is a no-op.

        With *status*, the session is only removed while it is still in that
        status, so a late failure cannot wipe out a session someone else
        has since completed.
        """
        if state not in self._sessions:
            return
        lock = await self._get_lock(state)
        async with lock:
            session = self._sessions.get(state)
            if session is not None and (status is None or session.status is status):
                del self._sessions[state]
        self._forget_lock(state)

    async def claim(self, state: str) -> bool:
        """Move a live pending session to exchanging.

        Only one caller wins; everyone else gets False and must not use
        the authorization code.
        """
        if state not in self._sessions:
            return False
        lock = await self._get_lock(state)
        async with lock:
            session = self._sessions.get(state)
            if (
                session is None
                or session.status is not SessionStatus.PENDING
                or session.is_expired(self.ttl)
            ):
                return False
            session.status = SessionStatus.EXCHANGING
            return True

    async def complete(self, state: str, tokens: TokenBundle) -> bool:
        """Mark a live session complete and restart its TTL clock.

        Returns False if the session vanished or expired in the meantime.
        """
        if state not in self._sessions:
            return False
        lock = await self._get_lock(state)
        async with lock:
            session = self._sessions.get(state)
            if session is None or session.is_expired(self.ttl):
                self._sessions.pop(state, None)
                done = False
            else:
                session.status = SessionStatus.COMPLETE
                session.tokens = tokens
                session.created_at = time.monotonic()
                done = True
        self._forget_lock(state)
        return done

    async def consume(self, state: str) -> OAuthSession | None:
        """Read the session and remove it if it is complete or expired.

        A live session that is not complete yet is returned and left in place.
        Runs under the state's lock so a completed session is handed to
        exactly one caller.
        """
        if state not in self._sessions:
            return None
        lock = await self._get_lock(state)
        async with lock:
            session = self._sessions.get(state)
            if session is not None and (
                session.is_expired(self.ttl) or session.status is SessionStatus.COMPLETE
            ):
                del self._sessions[state]
        self._forget_lock(state)
        return session

    async def purge_expired(self) -> int:
        """Remove every expired session. Returns how many were removed."""
        now = time.monotonic()
        expired = [
            state
            for state, session in list(self._sessions.items())
            if session.is_expired(self.ttl, now)
        ]

        removed = 0
        for state in expired:
            lock = await self._get_lock(state)
            async with lock:
                session = self._sessions.get(state)
                if session is not None and session.is_expired(self.ttl):
                    del self._sessions[state]
                    removed += 1

        # Drop locks for states that no longer have a session and nobody holds
        async with self._global_lock:
            for state in [s for s, lk in self._locks.items() if s not in self._sessions]:
                if not self._locks[state].locked():
                    del self._locks[state]

        if removed:
            logger.debug("Purged %d expired OAuth session(s)", removed)
        return removed

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, state: object) -> bool:
        return state in self._sessions
