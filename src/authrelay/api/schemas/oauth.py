# OAuth relay schemas.
# Created: 2026-10-05

from __future__ import annotations

from pydantic import BaseModel


class RefreshRequest(BaseModel):
    """Refresh-token grant request."""

    refresh_token: str | None = None


class TokenResponse(BaseModel):
    """Token bundle returned by poll and refresh."""

    access_token: str
    refresh_token: str | None = None
    expires_in: int | None = None
