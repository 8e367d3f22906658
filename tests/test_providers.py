# Tests for oauth/providers.py — provider registry.
# Created: 2026-10-06

import pytest

from authrelay.config import Settings
from authrelay.errors import ProviderNotConfiguredError, UnknownProviderError
from authrelay.oauth.providers import PROVIDERS, ProviderRegistry


@pytest.fixture
def registry():
    settings = Settings(
        _env_file=None,
        spotify_client_id="sid",
        spotify_client_secret="ssecret",
        github_client_id="gid",
    )
    return ProviderRegistry.from_settings(settings)


class TestProviderRegistry:
    def test_contains_all_known_providers(self, registry):
        assert set(registry) == set(PROVIDERS)
        assert len(registry) == len(PROVIDERS)

    def test_credentials_from_settings(self, registry):
        spotify = registry["spotify"]
        assert spotify.client_id == "sid"
        assert spotify.client_secret == "ssecret"
        assert spotify.can_start and spotify.can_exchange

    def test_lookup_unknown(self, registry):
        with pytest.raises(UnknownProviderError) as exc_info:
            registry.lookup("myspace")
        assert exc_info.value.status_code == 404

    def test_for_start_requires_client_id(self, registry):
        assert registry.for_start("github").id == "github"
        with pytest.raises(ProviderNotConfiguredError) as exc_info:
            registry.for_start("google")
        assert exc_info.value.status_code == 500

    def test_for_exchange_requires_secret(self, registry):
        assert registry.for_exchange("spotify").id == "spotify"
        with pytest.raises(ProviderNotConfiguredError):
            registry.for_exchange("github")

    def test_unknown_beats_not_configured(self, registry):
        with pytest.raises(UnknownProviderError):
            registry.for_exchange("nope")

    def test_immutable(self, registry):
        with pytest.raises(TypeError):
            registry._providers["evil"] = registry["spotify"]
        with pytest.raises(AttributeError):
            registry["spotify"].authorize_url = "https://evil.example.com"

    def test_google_extra_params(self, registry):
        assert registry["google"].extra_authorize_params["access_type"] == "offline"
        assert dict(registry["spotify"].extra_authorize_params) == {}


def test_blank_credentials_are_unset():
    settings = Settings(_env_file=None, spotify_client_id="  ", spotify_client_secret="")
    registry = ProviderRegistry.from_settings(settings)
    assert not registry["spotify"].can_start
