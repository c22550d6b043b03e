"""Pydantic models for the checkout risk engine."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def epoch_millis(moment: Optional[datetime] = None) -> int:
    """Milliseconds since the epoch for ``moment`` (defaults to now)."""
    moment = moment or datetime.now(timezone.utc)
    return int(moment.timestamp() * 1000)


class CamelModel(BaseModel):
    """Base model that serializes to the camelCase wire format."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Configuration ---------------------------------------------------------


class VelocityConfig(BaseModel):
    """Hard ceilings enforced by the velocity limiter."""
    model_config = ConfigDict(frozen=True)

    max_amount_per_transaction: float = 200_000
    max_daily_amount: float = 1_000_000
    max_transactions_per_hour: int = 3
    # Per-day transaction cap, split per identifier type
    max_transactions_per_email: int = 5
    max_transactions_per_ip: int = 5
    suspicious_amount_threshold: float = 100_000
    hourly_window_seconds: int = 3600
    # When False, a rejected attempt's amount is taken back off the daily total
    count_rejected_amount: bool = True


class TourPriceRange(BaseModel):
    model_config = ConfigDict(frozen=True)

    min: float
    max: float


DEFAULT_TOUR_PRICE_RANGES = {
    "morning-tour": TourPriceRange(min=5_000, max=15_000),
    "night-tour": TourPriceRange(min=8_000, max=20_000),
    "gion-tour": TourPriceRange(min=10_000, max=25_000),
    "uji-tour": TourPriceRange(min=15_000, max=35_000),
}

DEFAULT_ALLOWED_COUNTRIES = ("JP", "US", "GB", "CA", "AU", "NZ", "SG")


class RiskConfig(BaseModel):
    """Weights and thresholds for the risk scorer."""
    model_config = ConfigDict(frozen=True)

    amount_weight: int = 25
    frequency_weight: int = 20
    time_weight: int = 15
    location_weight: int = 25
    booking_frequency_threshold: int = 3
    # None counts every booking ever recorded for the user and tour
    booking_history_window_days: Optional[int] = None
    normal_hours_start: int = 6
    normal_hours_end: int = 22
    local_timezone: Optional[str] = None
    allowed_countries: tuple[str, ...] = DEFAULT_ALLOWED_COUNTRIES
    tour_price_ranges: dict[str, TourPriceRange] = Field(
        default_factory=lambda: dict(DEFAULT_TOUR_PRICE_RANGES)
    )
    high_risk_threshold: int = 60
    critical_risk_threshold: int = 80


# --- Velocity limiter ------------------------------------------------------


class VelocityCheckRequest(BaseModel):
    """A single purchase attempt presented to the velocity limiter."""
    ip: str
    email: str
    amount: float = Field(gt=0)
    timestamp: int = Field(default_factory=epoch_millis)  # epoch millis


class VelocityDecision(BaseModel):
    allowed: bool
    reason: Optional[str] = None


class SuspiciousEntry(CamelModel):
    """A flagged attempt waiting in the suspicious-transaction queue."""
    ip: str
    email: str
    amount: float
    timestamp: int
    reason: str
    flagged_at: int


# --- Risk scorer -----------------------------------------------------------


class TransactionData(CamelModel):
    """Booking data assessed by the risk scorer."""
    booking_id: str
    tour_id: str
    amount: float = Field(gt=0)
    email: str
    ip: str
    user_id: str = "anonymous"
    user_agent: Optional[str] = None
    correlation_id: Optional[str] = None


class RuleResult(BaseModel):
    """Output of a single risk heuristic."""
    factor: str  # human-readable factor name
    detail_key: str  # key under RiskAssessment.details
    triggered: bool
    score_delta: int  # points added when triggered
    details: dict[str, Any] = Field(default_factory=dict)
    # Set when an advisory lookup failed and the heuristic failed open
    error: Optional[str] = None


class RiskAssessment(BaseModel):
    score: int  # 0-100
    factors: list[str]
    details: dict[str, Any]


class RiskAction(str, Enum):
    ALLOW = "allow"
    REVIEW = "review"
    BLOCK = "block"


class RiskDecision(BaseModel):
    """Assessment plus the routing action taken for it."""
    assessment: RiskAssessment
    action: RiskAction


class TransactionHistoryRecord(TransactionData):
    """Transaction plus its score, as kept in the history sorted sets."""
    risk_score: int
    risk_factors: list[str]
    timestamp: int


class ReviewEntry(TransactionHistoryRecord):
    """Transaction queued for human review."""
    status: str = "pending_review"


# --- HTTP bodies -----------------------------------------------------------


class VelocityCheckBody(CamelModel):
    email: Optional[str] = None
    amount: Optional[float] = None

    def has_valid_amount(self) -> bool:
        return self.amount is not None and self.amount > 0


class RiskAssessmentBody(CamelModel):
    booking_id: Optional[str] = None
    tour_id: Optional[str] = None
    amount: Optional[float] = None
    email: Optional[str] = None

    def missing_fields(self) -> dict[str, bool]:
        """Map each required field to True when it is missing or empty.

        A zero or negative amount counts as missing.
        """
        return {
            "bookingId": not self.booking_id,
            "tourId": not self.tour_id,
            "amount": self.amount is None or self.amount <= 0,
            "email": not self.email,
        }


class RulesSnapshot(BaseModel):
    velocity: VelocityConfig
    risk: RiskConfig
