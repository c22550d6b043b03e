"""Time-of-day rule: bookings in the small hours are unusual."""

from datetime import datetime

from checkout_risk.models import RuleResult

FACTOR = "Unusual time"
DETAIL_KEY = "timeAnalysis"


def check_unusual_time(
    now: datetime,
    start_hour: int = 6,
    end_hour: int = 22,
    weight: int = 15,
) -> RuleResult:
    """Flag bookings whose local hour is before ``start_hour`` or after ``end_hour``."""
    hour = now.hour
    triggered = hour < start_hour or hour > end_hour
    return RuleResult(
        factor=FACTOR,
        detail_key=DETAIL_KEY,
        triggered=triggered,
        score_delta=weight if triggered else 0,
        details={
            "hour": hour,
            "normalRange": f"{start_hour}:00 - {end_hour}:00",
        },
    )
