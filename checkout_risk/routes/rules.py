"""Rules configuration endpoint."""

from fastapi import APIRouter, Request

from checkout_risk.models import RulesSnapshot

router = APIRouter(prefix="/api")


@router.get("/rules", response_model=RulesSnapshot)
async def get_rules(request: Request) -> RulesSnapshot:
    """Return the active velocity and risk configuration.

    Configuration is frozen at startup; restart the service to change it.
    """
    return RulesSnapshot(
        velocity=request.app.state.limiter.config,
        risk=request.app.state.scorer.config,
    )
