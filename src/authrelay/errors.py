# Error taxonomy shared by the relay, the gateway and the HTTP layer.
# Created: 2026-10-02
#
# Each error knows the HTTP status and the short machine-readable code it maps
# to. Routes let them propagate; the app-level handler renders JSON, and the
# OAuth callback route renders HTML instead.

from __future__ import annotations


class RelayError(Exception):
    """Base class for every error that is reported to a caller."""

    status_code = 500
    error = "internal_error"

    def __init__(self, message: str = "", *, error: str | None = None):
        super().__init__(message or self.error)
        self.message = message
        if error is not None:
            self.error = error

    def to_dict(self) -> dict[str, str]:
        body = {"error": self.error}
        if self.message:
            body["message"] = self.message
        return body


# --- 4xx -----------------------------------------------------------------


class ClientError(RelayError):
    status_code = 400
    error = "invalid_request"


class MissingParameterError(ClientError):
    error = "missing_parameter"


class UnknownStateError(ClientError):
    error = "unknown_state"


class ProviderDeniedError(ClientError):
    """The provider redirected back with an error instead of a code."""

    error = "access_denied"


class InvalidDeviceNameError(ClientError):
    error = "invalid_device_name"


class UnknownProviderError(ClientError):
    status_code = 404
    error = "unknown_provider"


class ForbiddenError(RelayError):
    status_code = 403
    error = "forbidden"


class SessionNotFoundError(RelayError):
    status_code = 404
    error = "not_found"


class SessionExpiredError(RelayError):
    status_code = 410
    error = "expired"


class RateLimitedError(RelayError):
    status_code = 429
    error = "rate_limited"

    def __init__(self, message: str = "", *, retry_after: int = 1):
        super().__init__(message)
        self.retry_after = retry_after


# --- configuration -------------------------------------------------------


class ConfigError(RelayError):
    status_code = 503
    error = "not_configured"


class ProviderNotConfiguredError(ConfigError):
    status_code = 500


class RegistrationNotConfiguredError(ConfigError):
    pass


# --- upstream ------------------------------------------------------------


class UpstreamError(RelayError):
    status_code = 502
    error = "upstream_error"


class TokenExchangeError(UpstreamError):
    """The provider's token endpoint rejected the grant or replied garbage.

    ``error`` carries the provider's own error code when it sent one
    (``invalid_grant``, ``bad_verification_code`` ...).
    """

    error = "token_exchange_failed"


class UpstreamUnavailableError(UpstreamError):
    """Transport-level failure: connect error, timeout, protocol error."""

    error = "upstream_unavailable"


class OrchestratorError(UpstreamError):
    error = "orchestrator_error"
