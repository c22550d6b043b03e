"""Geography rule.

Resolves the client IP to a country and flags countries outside the
allow-list. Geolocation is advisory: when the lookup fails the rule does
not fire and the failure is kept in the details.
"""

import logging
from typing import Collection

from checkout_risk.errors import GeolocationError
from checkout_risk.geolocation import Geolocator
from checkout_risk.models import RuleResult

logger = logging.getLogger(__name__)

FACTOR = "Unusual location"
DETAIL_KEY = "locationAnalysis"


async def check_location(
    ip: str,
    geolocator: Geolocator,
    allowed_countries: Collection[str],
    weight: int = 25,
) -> RuleResult:
    try:
        country = await geolocator.resolve_country(ip)
    except GeolocationError as exc:
        logger.warning("Error checking location for %s: %s", ip, exc)
        return RuleResult(
            factor=FACTOR,
            detail_key=DETAIL_KEY,
            triggered=False,
            score_delta=0,
            details={"error": "Failed to check location"},
            error=str(exc),
        )

    triggered = country not in allowed_countries
    return RuleResult(
        factor=FACTOR,
        detail_key=DETAIL_KEY,
        triggered=triggered,
        score_delta=weight if triggered else 0,
        details={"country": country, "allowedCountries": list(allowed_countries)},
    )
