# Shared FastAPI dependencies for the API layer.
# Created: 2026-10-05
#
# Components are built once in create_app() and stored on app.state;
# routes reach them through these dependencies.

from __future__ import annotations

from fastapi import Request

from authrelay.errors import RateLimitedError
from authrelay.oauth.relay import OAuthRelay
from authrelay.registration.gateway import RegistrationGateway


def get_relay(request: Request) -> OAuthRelay:
    return request.app.state.relay


def get_gateway(request: Request) -> RegistrationGateway:
    return request.app.state.gateway


async def limit_registration(request: Request) -> None:
    """Per-IP token bucket in front of /register.

    A no-op when the limiter is disabled (``register_rate_limit = 0``).
    """
    limiter = request.app.state.register_limiter
    if limiter is None:
        return

    client_ip = request.client.host if request.client else "unknown"
    info = limiter.check(client_ip)
    if not info.allowed:
        raise RateLimitedError("Too many registration attempts", retry_after=info.retry_after)
