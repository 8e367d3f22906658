# OAuth relay router — start, callback, poll, refresh.
# Created: 2026-10-05
#
# start/poll/refresh speak JSON to the headless client. callback is opened in
# the user's browser, so its outcomes (success or failure) are HTML pages.

from __future__ import annotations

import html
import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse

from authrelay.api.deps import get_relay
from authrelay.api.schemas.common import ErrorResponse, StatusResponse
from authrelay.api.schemas.oauth import RefreshRequest, TokenResponse
from authrelay.errors import RelayError
from authrelay.oauth.relay import OAuthRelay

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/oauth", tags=["OAuth"])

_PAGE_HTML = """<!DOCTYPE html>
<html><head><meta charset="utf-8"><title>{title}</title>
<style>
body {{ font-family: system-ui; max-width: 480px; margin: 40px auto; padding: 20px; }}
h2 {{ margin-bottom: 8px; }}
.detail {{ background: #f3f4f6; padding: 12px; border-radius: 8px; margin: 16px 0; }}
</style></head><body>
<h2>{title}</h2>
{body}
<p>You can close this window.</p>
</body></html>"""


def _page(title: str, message: str, status_code: int = 200) -> HTMLResponse:
    body = f'<div class="detail">{html.escape(message)}</div>' if message else ""
    return HTMLResponse(
        _PAGE_HTML.format(title=html.escape(title), body=body), status_code=status_code
    )


@router.get("/callback", response_class=HTMLResponse)
async def oauth_callback(
    code: str = Query(""),
    state: str = Query(""),
    error: str = Query(""),
    error_description: str = Query(""),
    relay: OAuthRelay = Depends(get_relay),
):
    """Provider redirect target — exchanges the code and completes the session."""
    try:
        await relay.callback(
            code=code, state=state, error=error, error_description=error_description
        )
    except RelayError as e:
        return _page("Authorization failed", e.message or e.error, status_code=e.status_code)

    return _page(
        "Authorization successful",
        "Your device will pick up the tokens automatically.",
    )


@router.get(
    "/poll/{state}",
    response_model=TokenResponse,
    responses={
        202: {"model": StatusResponse},
        404: {"model": ErrorResponse},
        410: {"model": ErrorResponse},
    },
)
async def oauth_poll(state: str, relay: OAuthRelay = Depends(get_relay)):
    """Poll for tokens. 202 while pending; 200 exactly once when complete."""
    result = await relay.poll(state)
    if result.pending:
        return JSONResponse(status_code=202, content={"status": "pending"})
    return JSONResponse(content=result.tokens.to_dict())


@router.get("/{provider}/start", status_code=302)
async def oauth_start(
    provider: str,
    state: str = Query(""),
    relay: OAuthRelay = Depends(get_relay),
):
    """Redirect the browser to the provider's consent screen."""
    auth_url = await relay.start(provider, state)
    return RedirectResponse(auth_url, status_code=302)


@router.post("/{provider}/refresh", response_model=TokenResponse)
async def oauth_refresh(
    provider: str,
    body: RefreshRequest,
    relay: OAuthRelay = Depends(get_relay),
):
    """Refresh an access token using the provider's client credentials."""
    tokens = await relay.refresh(provider, body.refresh_token or "")
    return JSONResponse(content=tokens.to_dict())
