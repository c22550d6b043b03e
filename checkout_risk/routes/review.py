"""Read-only views of the review queues for triage tooling."""

from typing import Any

from fastapi import APIRouter, Query, Request

from checkout_risk.screening.review import ReviewQueue
from checkout_risk.storage.keys import REVIEW_QUEUE, SUSPICIOUS_QUEUE

router = APIRouter(prefix="/api")


def _get_review_queue(request: Request) -> ReviewQueue:
    """Retrieve the review queue from application state."""
    return request.app.state.review_queue


@router.get("/review-queue")
async def get_review_queue(
    request: Request,
    limit: int = Query(default=50, ge=1, le=500),
) -> list[dict[str, Any]]:
    """Newest bookings the risk scorer allowed but flagged for review."""
    return await _get_review_queue(request).pending(REVIEW_QUEUE, limit=limit)


@router.get("/suspicious-transactions")
async def get_suspicious_transactions(
    request: Request,
    limit: int = Query(default=50, ge=1, le=500),
) -> list[dict[str, Any]]:
    """Newest attempts flagged by the velocity limiter."""
    return await _get_review_queue(request).pending(SUSPICIOUS_QUEUE, limit=limit)
