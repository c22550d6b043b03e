"""Amount plausibility rule.

Tours are priced in whole currency units, so a fractional amount is
unusual on its face. Otherwise the amount is compared against the price
range catalogued for the tour; an unknown tour is also unusual.
"""

from typing import Mapping

from checkout_risk.models import RuleResult, TourPriceRange

FACTOR = "Unusual amount"
DETAIL_KEY = "amountAnalysis"


def check_unusual_amount(
    amount: float,
    tour_id: str,
    price_ranges: Mapping[str, TourPriceRange],
    weight: int = 25,
) -> RuleResult:
    """Flag fractional amounts and amounts outside the tour's price range.

    ``deviation`` is negative when the amount is below the range, positive
    when above it, and 0 inside it.
    """
    if amount % 1 != 0:
        return RuleResult(
            factor=FACTOR,
            detail_key=DETAIL_KEY,
            triggered=True,
            score_delta=weight,
            details={"reason": "Fractional amount not allowed", "amount": amount},
        )

    price_range = price_ranges.get(tour_id)
    if price_range is None:
        return RuleResult(
            factor=FACTOR,
            detail_key=DETAIL_KEY,
            triggered=True,
            score_delta=weight,
            details={"reason": "Unknown tour type", "tourId": tour_id},
        )

    if amount < price_range.min:
        deviation = amount - price_range.min
    elif amount > price_range.max:
        deviation = amount - price_range.max
    else:
        deviation = 0

    triggered = deviation != 0
    return RuleResult(
        factor=FACTOR,
        detail_key=DETAIL_KEY,
        triggered=triggered,
        score_delta=weight if triggered else 0,
        details={
            "amount": amount,
            "expectedRange": {"min": price_range.min, "max": price_range.max},
            "deviation": deviation,
        },
    )
