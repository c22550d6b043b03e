"""Booking frequency rule.

Counts the bookings already recorded for the same user and tour. Repeated
bookings of one tour by one account are a common card-testing pattern.
"""

from datetime import timedelta
from typing import Optional

from checkout_risk.models import RuleResult
from checkout_risk.storage.base import CounterStore
from checkout_risk.storage.keys import bookings_key

FACTOR = "Multiple bookings"
DETAIL_KEY = "bookingAnalysis"


async def check_booking_frequency(
    user_id: str,
    tour_id: str,
    store: CounterStore,
    now_ms: int,
    threshold: int = 3,
    window_days: Optional[int] = None,
    weight: int = 20,
) -> RuleResult:
    """Flag the booking when ``threshold`` or more prior bookings exist.

    With ``window_days`` set, only bookings recorded in that many days
    before ``now_ms`` count; otherwise the whole history does.
    """
    min_score = "-inf"
    if window_days is not None:
        min_score = now_ms - int(timedelta(days=window_days).total_seconds() * 1000)

    count = await store.count_sorted_set_members(
        bookings_key(user_id, tour_id), min_score=min_score
    )
    triggered = count >= threshold

    details = {"bookingCount": count, "threshold": threshold}
    if window_days is not None:
        details["windowDays"] = window_days

    return RuleResult(
        factor=FACTOR,
        detail_key=DETAIL_KEY,
        triggered=triggered,
        score_delta=weight if triggered else 0,
        details=details,
    )
