# Tests for the OAuth relay HTTP routes (start / callback / poll / refresh).
# Created: 2026-10-08

import time
import urllib.parse

import httpx
import pytest
from fastapi.testclient import TestClient

from authrelay.api.serve import create_app
from authrelay.config import Settings
from authrelay.oauth.exchange import TokenExchangeClient
from authrelay.oauth.providers import ProviderRegistry
from authrelay.oauth.relay import OAuthRelay
from authrelay.oauth.sessions import SessionStore


class FakeTokenEndpoint:
    """Stands in for every provider token endpoint."""

    def __init__(self):
        self.requests: list[dict[str, str]] = []
        self.response = httpx.Response(
            200, json={"access_token": "at-1", "refresh_token": "rt-1", "expires_in": 3600}
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(dict(urllib.parse.parse_qsl(request.content.decode())))
        return self.response


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        public_url="https://relay.example.com",
        spotify_client_id="spotify-id",
        spotify_client_secret="spotify-secret",
        github_client_id="github-id",
    )


@pytest.fixture
def token_endpoint():
    return FakeTokenEndpoint()


@pytest.fixture
def store(settings):
    return SessionStore(ttl=settings.session_ttl_seconds)


@pytest.fixture
def client(settings, store, token_endpoint):
    relay = OAuthRelay(
        registry=ProviderRegistry.from_settings(settings),
        store=store,
        exchanger=TokenExchangeClient(transport=httpx.MockTransport(token_endpoint)),
        redirect_uri=settings.callback_url,
    )
    app = create_app(settings, relay=relay)
    with TestClient(app) as c:
        yield c


def _start(client, provider="spotify", state="abc123"):
    return client.get(
        f"/oauth/{provider}/start", params={"state": state}, follow_redirects=False
    )


class TestStart:
    def test_redirects_to_provider(self, client):
        resp = _start(client)

        assert resp.status_code == 302
        location = resp.headers["location"]
        assert location.startswith("https://accounts.spotify.com/authorize?")
        params = dict(urllib.parse.parse_qsl(urllib.parse.urlsplit(location).query))
        assert params["client_id"] == "spotify-id"
        assert params["response_type"] == "code"
        assert params["redirect_uri"] == "https://relay.example.com/oauth/callback"
        assert "user-read-playback-state" in params["scope"]
        assert params["state"] == "abc123"

    def test_unknown_provider(self, client):
        resp = _start(client, provider="myspace")
        assert resp.status_code == 404
        assert resp.json()["error"] == "unknown_provider"

    def test_not_configured(self, client):
        resp = _start(client, provider="google")
        assert resp.status_code == 500
        assert resp.json()["error"] == "not_configured"

    def test_missing_state(self, client):
        resp = client.get("/oauth/spotify/start", follow_redirects=False)
        assert resp.status_code == 400
        assert resp.json()["error"] == "missing_parameter"


class TestFullFlow:
    def test_start_callback_poll(self, client, token_endpoint):
        _start(client)

        resp = client.get("/oauth/poll/abc123")
        assert resp.status_code == 202
        assert resp.json() == {"status": "pending"}

        resp = client.get("/oauth/callback", params={"code": "the-code", "state": "abc123"})
        assert resp.status_code == 200
        assert "text/html" in resp.headers["content-type"]
        assert "Authorization successful" in resp.text

        sent = token_endpoint.requests[0]
        assert sent["grant_type"] == "authorization_code"
        assert sent["code"] == "the-code"
        assert sent["redirect_uri"] == "https://relay.example.com/oauth/callback"

        resp = client.get("/oauth/poll/abc123")
        assert resp.status_code == 200
        assert resp.json() == {
            "access_token": "at-1",
            "refresh_token": "rt-1",
            "expires_in": 3600,
        }

        # Tokens are handed out once
        resp = client.get("/oauth/poll/abc123")
        assert resp.status_code == 404
        assert resp.json()["error"] == "not_found"

    def test_bundle_without_refresh_token(self, client, token_endpoint):
        token_endpoint.response = httpx.Response(200, json={"access_token": "only"})
        _start(client)
        client.get("/oauth/callback", params={"code": "c", "state": "abc123"})

        body = client.get("/oauth/poll/abc123").json()
        assert body["access_token"] == "only"
        assert "refresh_token" not in body


class TestCallback:
    def test_unknown_state(self, client, store):
        resp = client.get("/oauth/callback", params={"code": "c", "state": "ghost"})
        assert resp.status_code == 400
        assert "text/html" in resp.headers["content-type"]
        assert "ghost" not in store

    def test_missing_code(self, client):
        _start(client)
        resp = client.get("/oauth/callback", params={"state": "abc123"})
        assert resp.status_code == 400
        assert "Missing authorization code" in resp.text

    def test_exchange_failure_page(self, client, store, token_endpoint):
        token_endpoint.response = httpx.Response(
            400,
            json={"error": "invalid_grant", "error_description": "Invalid authorization code"},
        )
        _start(client)

        resp = client.get("/oauth/callback", params={"code": "bad", "state": "abc123"})

        assert resp.status_code == 502
        assert "Authorization failed" in resp.text
        assert "Invalid authorization code" in resp.text
        assert "abc123" not in store
        assert client.get("/oauth/poll/abc123").status_code == 404

    def test_provider_without_secret(self, client, store, token_endpoint):
        # github has a client id in the fixture settings but no secret
        assert _start(client, provider="github", state="gh").status_code == 302

        resp = client.get("/oauth/callback", params={"code": "c", "state": "gh"})

        assert resp.status_code == 500
        assert "text/html" in resp.headers["content-type"]
        assert "Authorization failed" in resp.text
        assert "gh" not in store
        assert token_endpoint.requests == []

    def test_provider_denial(self, client, store):
        _start(client)
        resp = client.get(
            "/oauth/callback",
            params={"state": "abc123", "error": "access_denied"},
        )
        assert resp.status_code == 400
        assert "access_denied" in resp.text
        assert "abc123" not in store

    def test_error_description_is_escaped(self, client, token_endpoint):
        token_endpoint.response = httpx.Response(
            400, json={"error": "x", "error_description": "<script>alert(1)</script>"}
        )
        _start(client)
        resp = client.get("/oauth/callback", params={"code": "c", "state": "abc123"})
        assert "<script>" not in resp.text
        assert "&lt;script&gt;" in resp.text


class TestPoll:
    def test_never_started(self, client):
        resp = client.get("/oauth/poll/nobody")
        assert resp.status_code == 404
        assert resp.json() == {"error": "not_found"}

    def test_expired(self, client, store):
        _start(client)
        store._sessions["abc123"].created_at = time.monotonic() - 301

        resp = client.get("/oauth/poll/abc123")
        assert resp.status_code == 410
        assert resp.json() == {"error": "expired"}
        assert client.get("/oauth/poll/abc123").status_code == 404


class TestRefresh:
    def test_refresh(self, client, token_endpoint):
        token_endpoint.response = httpx.Response(
            200, json={"access_token": "at-2", "expires_in": 3600}
        )
        resp = client.post("/oauth/spotify/refresh", json={"refresh_token": "rt-1"})

        assert resp.status_code == 200
        assert resp.json() == {"access_token": "at-2", "expires_in": 3600}
        assert token_endpoint.requests[-1]["grant_type"] == "refresh_token"
        assert token_endpoint.requests[-1]["refresh_token"] == "rt-1"

    def test_missing_refresh_token(self, client):
        resp = client.post("/oauth/spotify/refresh", json={})
        assert resp.status_code == 400

    def test_malformed_body(self, client):
        resp = client.post("/oauth/spotify/refresh", content=b"not json")
        assert resp.status_code == 400
        assert resp.json()["error"] == "invalid_request"

    def test_unknown_provider(self, client):
        resp = client.post("/oauth/myspace/refresh", json={"refresh_token": "r"})
        assert resp.status_code == 404

    def test_not_configured(self, client):
        resp = client.post("/oauth/github/refresh", json={"refresh_token": "r"})
        assert resp.status_code == 500

    def test_upstream_rejects(self, client, token_endpoint):
        token_endpoint.response = httpx.Response(
            400, json={"error": "invalid_grant", "error_description": "Refresh token revoked"}
        )
        resp = client.post("/oauth/spotify/refresh", json={"refresh_token": "r"})
        assert resp.status_code == 502
        assert resp.json() == {"error": "invalid_grant", "message": "Refresh token revoked"}
