# Registration schemas.
# Created: 2026-10-05

from __future__ import annotations

from pydantic import BaseModel


class RegisterRequest(BaseModel):
    """Device enrollment request.

    Both fields are optional at the schema level so a missing field is
    reported as our own 400 rather than FastAPI's 422.
    """

    secret: str | None = None
    device_name: str | None = None


class RegisterResponse(BaseModel):
    auth_key: str
    login_server: str
    user: str
