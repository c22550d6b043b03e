"""Velocity check endpoint called before a booking is committed."""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from checkout_risk.errors import CounterStoreError
from checkout_risk.models import VelocityCheckBody, VelocityCheckRequest, epoch_millis
from checkout_risk.routes.deps import client_ip
from checkout_risk.screening.velocity import VelocityLimiter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


def _get_limiter(request: Request) -> VelocityLimiter:
    """Retrieve the velocity limiter from application state."""
    return request.app.state.limiter


@router.post("/velocity-check")
async def check_velocity(body: VelocityCheckBody, request: Request) -> JSONResponse:
    """Run the velocity limiter for one purchase attempt.

    Returns 429 with the rejection reason when a ceiling is exceeded.
    """
    ip = client_ip(request)
    if not ip or not body.email or not body.has_valid_amount():
        return JSONResponse(
            status_code=400,
            content={"error": "Missing required fields: ip, email, or amount"},
        )

    limiter = _get_limiter(request)
    try:
        decision = await limiter.check_velocity(
            VelocityCheckRequest(
                ip=ip,
                email=body.email,
                amount=body.amount,
                timestamp=epoch_millis(limiter.clock()),
            )
        )
    except CounterStoreError:
        logger.exception("Velocity check failed for %s", body.email)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    if not decision.allowed:
        return JSONResponse(status_code=429, content={"error": decision.reason})

    return JSONResponse(
        status_code=200,
        content={"success": True, "velocityCheck": decision.model_dump(exclude_none=True)},
    )
