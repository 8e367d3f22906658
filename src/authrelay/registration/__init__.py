# Headscale device registration.

from authrelay.registration.gateway import RegistrationGateway, RegistrationResult
from authrelay.registration.headscale import HeadscaleClient
from authrelay.registration.names import normalize_device_name

__all__ = [
    "HeadscaleClient",
    "RegistrationGateway",
    "RegistrationResult",
    "normalize_device_name",
]
