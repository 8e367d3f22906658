# Registration router — shared-secret device enrollment.
# Created: 2026-10-05

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from authrelay.api.deps import get_gateway, limit_registration
from authrelay.api.schemas.common import ErrorResponse
from authrelay.api.schemas.register import RegisterRequest, RegisterResponse
from authrelay.registration.gateway import RegistrationGateway

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Registration"])


@router.post(
    "/register",
    response_model=RegisterResponse,
    dependencies=[Depends(limit_registration)],
    responses={
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)
async def register_device(
    body: RegisterRequest,
    gateway: RegistrationGateway = Depends(get_gateway),
):
    """Create (or reuse) the device's Headscale user and issue a one-time key."""
    result = await gateway.register(body.secret, body.device_name)
    return result.to_dict()
