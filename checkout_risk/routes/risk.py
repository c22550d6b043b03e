"""Risk assessment endpoint for bookings that passed the velocity check."""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from checkout_risk.models import RiskAction, RiskAssessmentBody, TransactionData
from checkout_risk.routes.deps import client_ip
from checkout_risk.screening.engine import RiskScorer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


def _get_scorer(request: Request) -> RiskScorer:
    """Retrieve the risk scorer from application state."""
    return request.app.state.scorer


@router.post("/risk-assessment")
async def assess_booking(body: RiskAssessmentBody, request: Request) -> JSONResponse:
    """Score a booking and apply the routing policy.

    400 with a per-field map when required fields are missing, 400 with the
    assessment when the risk is critical, 500 on any internal failure.

    The user id comes from ``X-User-Id``, which the authenticating gateway in
    front of this service must set and strip from client requests. Without it
    a caller could rotate ids and never reach the booking-frequency threshold.
    """
    missing = body.missing_fields()
    if any(missing.values()):
        return JSONResponse(
            status_code=400,
            content={"error": "Missing required fields", "details": missing},
        )

    data = TransactionData(
        booking_id=body.booking_id,
        tour_id=body.tour_id,
        amount=body.amount,
        email=body.email,
        ip=client_ip(request),
        user_id=request.headers.get("x-user-id") or "anonymous",
        user_agent=request.headers.get("user-agent"),
        correlation_id=request.headers.get("x-correlation-id"),
    )

    scorer = _get_scorer(request)
    try:
        decision = await scorer.screen(data)
    except Exception:
        logger.exception(
            "Error processing transaction for booking %s (correlation id %s)",
            data.booking_id,
            data.correlation_id,
        )
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    risk_assessment = decision.assessment.model_dump()
    if decision.action is RiskAction.BLOCK:
        return JSONResponse(
            status_code=400,
            content={
                "error": "Critical risk transaction detected",
                "riskAssessment": risk_assessment,
            },
        )

    return JSONResponse(
        status_code=200,
        content={"riskAssessment": risk_assessment, "action": decision.action.value},
    )
