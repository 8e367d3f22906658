# Orchestrator Client — Headscale REST API for users and pre-auth keys.
# Created: 2026-10-04
#
# Endpoints used:
#   GET  /api/v1/user/{name}
#   POST /api/v1/user        {"name"}
#   POST /api/v1/preauthkey  {"user", "reusable", "ephemeral", "expiration"}

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from typing import Any

import httpx

from authrelay.errors import OrchestratorError

logger = logging.getLogger(__name__)

PREAUTH_KEY_TTL = timedelta(hours=1)


def preauth_expiration(now: datetime | None = None) -> str:
    """Expiry timestamp one hour after *now*, UTC, whole seconds, RFC 3339."""
    now = now or datetime.now(UTC)
    expires = now.astimezone(UTC).replace(microsecond=0) + PREAUTH_KEY_TTL
    return expires.strftime("%Y-%m-%dT%H:%M:%SZ")


class HeadscaleClient:
    """Bearer-authenticated client for the Headscale control plane."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._api_key = api_key
        self.timeout = timeout
        self._transport = transport

    async def _request(
        self, method: str, path: str, json: dict[str, Any] | None = None
    ) -> httpx.Response:
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
                headers={"Authorization": f"Bearer {self._api_key}"},
            ) as client:
                return await client.request(method, path, json=json)
        except httpx.HTTPError as e:
            logger.warning("Headscale %s %s failed: %s", method, path, e)
            raise OrchestratorError("Headscale is unreachable") from e

    async def user_exists(self, name: str) -> bool:
        resp = await self._request("GET", f"/api/v1/user/{name}")
        if resp.status_code == 404:
            return False
        if resp.is_error:
            raise OrchestratorError(_describe(resp, f"Failed to look up user {name}"))

        data = _json(resp)
        # Newer Headscale answers with a (possibly empty) list
        if "users" in data:
            return any(u.get("name") == name for u in data.get("users") or [])
        return bool(data.get("user"))

    async def create_user(self, name: str) -> None:
        resp = await self._request("POST", "/api/v1/user", json={"name": name})
        if resp.status_code == 409:
            logger.debug("Headscale user %s already exists", name)
            return
        if resp.is_error:
            raise OrchestratorError(_describe(resp, f"Failed to create user {name}"))
        logger.info("Created Headscale user %s", name)

    async def ensure_user(self, name: str) -> None:
        """Create user *name* unless it already exists."""
        if not await self.user_exists(name):
            await self.create_user(name)

    async def create_preauth_key(self, user: str, now: datetime | None = None) -> str:
        """Issue a single-use, non-ephemeral key for *user* valid for one hour."""
        resp = await self._request(
            "POST",
            "/api/v1/preauthkey",
            json={
                "user": user,
                "reusable": False,
                "ephemeral": False,
                "expiration": preauth_expiration(now),
            },
        )
        if resp.is_error:
            raise OrchestratorError(_describe(resp, f"Failed to create pre-auth key for {user}"))

        key = (_json(resp).get("preAuthKey") or {}).get("key")
        if not key:
            raise OrchestratorError("Headscale response did not contain a pre-auth key")
        logger.info("Issued pre-auth key for %s", user)
        return key


def _json(resp: httpx.Response) -> dict[str, Any]:
    try:
        data = resp.json()
    except ValueError as e:
        raise OrchestratorError("Headscale returned a non-JSON response") from e
    if not isinstance(data, dict):
        raise OrchestratorError("Headscale returned an unexpected response")
    return data


def _describe(resp: httpx.Response, fallback: str) -> str:
    """Prefer Headscale's own message (grpc-gateway puts it in "message")."""
    try:
        data = resp.json()
    except ValueError:
        data = None
    if isinstance(data, dict) and data.get("message"):
        return f"{fallback}: {data['message']}"
    return f"{fallback} (HTTP {resp.status_code})"
