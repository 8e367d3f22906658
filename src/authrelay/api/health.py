# Health router.
# Created: 2026-10-05

from __future__ import annotations

from fastapi import APIRouter

from authrelay.api.schemas.common import StatusResponse

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=StatusResponse)
async def health():
    """Liveness probe."""
    return StatusResponse()
