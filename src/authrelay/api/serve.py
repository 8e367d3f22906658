"""Application factory and server runner for ``authrelay``.

``create_app`` wires every component from one ``Settings`` value: provider
registry, session store, token exchange client, relay, registration gateway
and the /register rate limiter. They hang off ``app.state``; there is no
module-level mutable state.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from authrelay.config import Settings, get_settings
from authrelay.errors import RateLimitedError, RelayError
from authrelay.oauth.exchange import TokenExchangeClient
from authrelay.oauth.providers import ProviderRegistry
from authrelay.oauth.relay import OAuthRelay
from authrelay.oauth.sessions import SessionStore
from authrelay.registration.gateway import RegistrationGateway
from authrelay.security.rate_limiter import per_minute

logger = logging.getLogger(__name__)


async def _relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
    headers = None
    if isinstance(exc, RateLimitedError):
        headers = {"Retry-After": str(exc.retry_after)}
    if exc.status_code >= 500:
        logger.warning(
            "%s %s -> %d %s", request.method, request.url.path, exc.status_code, exc.error
        )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


async def _validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"error": "invalid_request", "message": "Malformed request body"},
    )


def create_app(
    settings: Settings | None = None,
    *,
    relay: OAuthRelay | None = None,
    gateway: RegistrationGateway | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    ``relay`` and ``gateway`` replace the components that would otherwise be
    built from *settings* (tests pass pre-wired instances).
    """
    from authrelay.api import mount_routers

    settings = settings or get_settings()

    app = FastAPI(
        title="authrelay",
        description="OAuth relay for headless clients and Headscale device registration.",
        version="1.0.0",
    )

    if relay is None:
        relay = OAuthRelay(
            registry=ProviderRegistry.from_settings(settings),
            store=SessionStore(ttl=settings.session_ttl_seconds),
            exchanger=TokenExchangeClient(timeout=settings.http_timeout),
            redirect_uri=settings.callback_url,
        )
    if gateway is None:
        gateway = RegistrationGateway.from_settings(settings)

    app.state.settings = settings
    app.state.relay = relay
    app.state.gateway = gateway
    app.state.register_limiter = per_minute(settings.register_rate_limit)

    app.add_exception_handler(RelayError, _relay_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)

    mount_routers(app)
    return app


def run_api_server(
    settings: Settings,
    host: str | None = None,
    port: int | None = None,
    dev: bool = False,
) -> None:
    """Start the relay under uvicorn."""
    import uvicorn

    host = host or settings.host
    port = port or settings.port
    logger.info(
        "authrelay listening on http://%s:%d (callback %s)", host, port, settings.callback_url
    )

    if dev:
        import pathlib

        src_dir = str(pathlib.Path(__file__).resolve().parent.parent)
        uvicorn.run(
            "authrelay.api.serve:create_app",
            factory=True,
            host=host,
            port=port,
            reload=True,
            reload_dirs=[src_dir],
            reload_includes=["*.py"],
            log_level="debug",
        )
    else:
        uvicorn.run(create_app(settings), host=host, port=port, log_config=None)
