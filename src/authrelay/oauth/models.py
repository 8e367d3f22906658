# OAuth relay data models.
# Created: 2026-10-02

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class SessionStatus(StrEnum):
    PENDING = "pending"
    # A callback owns the session and is exchanging its code
    EXCHANGING = "exchanging"
    COMPLETE = "complete"


@dataclass(frozen=True)
class TokenBundle:
    """Tokens handed back to the polling client, passed through untouched."""

    access_token: str
    refresh_token: str | None = None
    expires_in: int | None = None

    @classmethod
    def from_response(cls, data: dict[str, Any]) -> TokenBundle:
        """Build from a token endpoint JSON body. Raises KeyError without access_token."""
        access_token = data["access_token"]
        if not isinstance(access_token, str) or not access_token:
            raise KeyError("access_token")
        expires_in = data.get("expires_in")
        return cls(
            access_token=access_token,
            refresh_token=data.get("refresh_token") or None,
            expires_in=int(expires_in) if expires_in is not None else None,
        )

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"access_token": self.access_token}
        if self.refresh_token:
            body["refresh_token"] = self.refresh_token
        body["expires_in"] = self.expires_in
        return body


@dataclass
class OAuthSession:
    """One in-flight authorization, keyed by its state token."""

    state: str
    provider: str
    status: SessionStatus = SessionStatus.PENDING
    created_at: float = field(default_factory=time.monotonic)
    tokens: TokenBundle | None = None

    def age(self, now: float | None = None) -> float:
        return (time.monotonic() if now is None else now) - self.created_at

    def is_expired(self, ttl: float, now: float | None = None) -> bool:
        return self.age(now) > ttl
