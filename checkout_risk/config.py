"""Process settings and rule configuration loading.

Settings come from environment variables prefixed ``CHECKOUT_RISK_`` or a
``.env`` file in the working directory, e.g.::

    CHECKOUT_RISK_REDIS_URL=redis://localhost:6379/0
    CHECKOUT_RISK_ALERT_WEBHOOK_URL=https://alerts.example.com/hooks/checkout
    CHECKOUT_RISK_LOG_LEVEL=DEBUG

Rule thresholds live in JSON files under the data directory and are
loaded once at startup into frozen config models.
"""

import json
import logging
from pathlib import Path
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from checkout_risk.models import RiskConfig, TourPriceRange, VelocityConfig

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = Path(__file__).parent.parent / "data"


class Settings(BaseSettings):
    """Deployment settings for the checkout risk service.

    Attributes:
        COUNTER_STORE: ``redis`` for shared counters, ``memory`` for a
            single-process development store.
        REDIS_URL: Connection URL used when ``COUNTER_STORE`` is ``redis``.
        GEOLOCATION_URL: Base URL of the ipapi-style country lookup.
        GEOLOCATION_TIMEOUT_SECONDS: Per-lookup HTTP timeout.
        ALERT_WEBHOOK_URL: Optional endpoint receiving alert JSON.
        ALERT_TIMEOUT_SECONDS: Per-alert HTTP timeout.
        LOG_LEVEL: Root logger level.
        DATA_DIR: Directory holding the tour catalog and rule overrides.
    """

    model_config = SettingsConfigDict(env_prefix="CHECKOUT_RISK_", env_file=".env")

    COUNTER_STORE: Literal["redis", "memory"] = "redis"
    REDIS_URL: str = "redis://localhost:6379/0"
    GEOLOCATION_URL: str = "https://ipapi.co"
    GEOLOCATION_TIMEOUT_SECONDS: float = 2.0
    ALERT_WEBHOOK_URL: Optional[str] = None
    ALERT_TIMEOUT_SECONDS: float = 2.0
    LOG_LEVEL: str = "INFO"
    DATA_DIR: Path = DEFAULT_DATA_DIR


def load_rule_configs(data_dir: Path) -> tuple[VelocityConfig, RiskConfig]:
    """Build the velocity and risk configs from the JSON files in ``data_dir``.

    Missing files leave the defaults in place.
    """
    overrides: dict = {}
    rules_path = data_dir / "rules_config.json"
    if rules_path.exists():
        with open(rules_path, "r") as f:
            overrides = json.load(f)

    risk_fields = dict(overrides.get("risk", {}))

    ranges_path = data_dir / "tour_price_ranges.json"
    if ranges_path.exists():
        with open(ranges_path, "r") as f:
            risk_fields["tour_price_ranges"] = {
                tour_id: TourPriceRange(**price_range)
                for tour_id, price_range in json.load(f).items()
            }

    countries_path = data_dir / "allowed_countries.json"
    if countries_path.exists():
        with open(countries_path, "r") as f:
            risk_fields["allowed_countries"] = tuple(
                code.strip().upper() for code in json.load(f)
            )

    velocity = VelocityConfig(**overrides.get("velocity", {}))
    risk = RiskConfig(**risk_fields)
    logger.info(
        "Loaded rule configuration from %s (%d tours, %d allowed countries)",
        data_dir,
        len(risk.tour_price_ranges),
        len(risk.allowed_countries),
    )
    return velocity, risk
