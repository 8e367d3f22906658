# Registration Gateway — shared-secret device enrollment.
# Created: 2026-10-04

from __future__ import annotations

import hmac
import logging
from dataclasses import asdict, dataclass

from authrelay.config import Settings
from authrelay.errors import (
    ForbiddenError,
    InvalidDeviceNameError,
    MissingParameterError,
    RegistrationNotConfiguredError,
)
from authrelay.registration.headscale import HeadscaleClient
from authrelay.registration.names import normalize_device_name

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegistrationResult:
    auth_key: str
    login_server: str
    user: str

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


def secrets_match(provided: str, expected: str) -> bool:
    """Constant-time comparison of two secrets."""
    return hmac.compare_digest(provided.encode(), expected.encode())


class RegistrationGateway:
    """Turns (shared secret, device name) into a Headscale pre-auth key.

    The gateway refuses to run at all unless both the shared secret and the
    Headscale API key are configured.
    """

    def __init__(
        self,
        secret: str | None,
        login_server: str,
        headscale: HeadscaleClient | None,
    ):
        self._secret = secret
        self.login_server = login_server
        self.headscale = headscale

    @classmethod
    def from_settings(cls, settings: Settings) -> RegistrationGateway:
        headscale = None
        if settings.headscale_api_key:
            headscale = HeadscaleClient(
                settings.headscale_url,
                settings.headscale_api_key,
                timeout=settings.http_timeout,
            )
        else:
            logger.warning("Headscale API key not set; /register will refuse requests")
        if not settings.registration_secret:
            logger.warning("Registration secret not set; /register will refuse requests")
        return cls(settings.registration_secret, settings.login_server, headscale)

    @property
    def configured(self) -> bool:
        return bool(self._secret) and self.headscale is not None

    async def register(self, secret: str | None, device_name: str | None) -> RegistrationResult:
        """Validate the request and provision a user plus a single-use key.

        Raises:
            RegistrationNotConfiguredError: secret or Headscale key missing.
            MissingParameterError: secret or device_name missing.
            ForbiddenError: secret mismatch.
            InvalidDeviceNameError: name normalizes to nothing.
            OrchestratorError: Headscale failed.
        """
        if not self.configured:
            raise RegistrationNotConfiguredError("Registration is not configured")
        if not secret or not device_name:
            raise MissingParameterError("secret and device_name are required")
        if not secrets_match(secret, self._secret or ""):
            logger.warning("Registration rejected: bad secret")
            raise ForbiddenError("Invalid secret")

        user = normalize_device_name(device_name)
        if not user:
            raise InvalidDeviceNameError("device_name has no usable characters")

        await self.headscale.ensure_user(user)
        auth_key = await self.headscale.create_preauth_key(user)

        logger.info("Registered device %s", user)
        return RegistrationResult(auth_key=auth_key, login_server=self.login_server, user=user)
