# Token Exchange Client — authorization-code and refresh-token grants.
# Created: 2026-10-03

from __future__ import annotations

import logging
from typing import Any

import httpx

from authrelay.errors import TokenExchangeError, UpstreamUnavailableError
from authrelay.oauth.models import TokenBundle
from authrelay.oauth.providers import ProviderConfig

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15.0


class TokenExchangeClient:
    """Performs grants against a provider's token endpoint.

    No retries: one POST per call, bounded by ``timeout``. ``transport`` is
    passed straight to httpx and lets tests substitute a MockTransport.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.timeout = timeout
        self._transport = transport

    async def exchange_code(
        self, provider: ProviderConfig, code: str, redirect_uri: str
    ) -> TokenBundle:
        """Exchange an authorization code for tokens.

        Args:
            provider: Provider with client id and secret configured.
            code: Authorization code from the callback.
            redirect_uri: Same redirect URI used in the authorize request.
        """
        tokens = await self._grant(
            provider,
            {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": redirect_uri,
            },
        )
        logger.info("Exchanged authorization code with %s", provider.id)
        return tokens

    async def refresh(self, provider: ProviderConfig, refresh_token: str) -> TokenBundle:
        """Trade a refresh token for a fresh access token."""
        tokens = await self._grant(
            provider,
            {"grant_type": "refresh_token", "refresh_token": refresh_token},
        )
        logger.info("Refreshed access token with %s", provider.id)
        return tokens

    async def _grant(self, provider: ProviderConfig, form: dict[str, str]) -> TokenBundle:
        data = {
            **form,
            "client_id": provider.client_id or "",
            "client_secret": provider.client_secret or "",
        }
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                resp = await client.post(
                    provider.token_url,
                    data=data,
                    headers={"Accept": "application/json"},
                )
        except httpx.HTTPError as e:
            logger.warning("Token endpoint for %s unreachable: %s", provider.id, e)
            raise UpstreamUnavailableError(
                f"Could not reach {provider.id} token endpoint"
            ) from e

        body = _json_body(resp)
        # GitHub answers 200 with an "error" field instead of a 4xx
        if resp.is_error or body.get("error"):
            error_code = str(body.get("error") or "token_exchange_failed")
            description = body.get("error_description") or ""
            logger.warning(
                "%s rejected %s grant (HTTP %d, %s)",
                provider.id,
                form["grant_type"],
                resp.status_code,
                error_code,
            )
            raise TokenExchangeError(
                str(description) or f"{provider.id} token request failed",
                error=error_code,
            )

        try:
            return TokenBundle.from_response(body)
        except (KeyError, TypeError, ValueError) as e:
            raise TokenExchangeError(
                f"{provider.id} token response is missing an access token"
            ) from e


def _json_body(resp: httpx.Response) -> dict[str, Any]:
    try:
        body = resp.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}
