"""Risk scorer orchestrator.

Runs the four heuristics against a booking:
  1. Amount plausibility
  2. Booking frequency (reads the booking history)
  3. Time of day
  4. Geography (advisory, fails open)

Then aggregates them into a RiskAssessment. ``screen`` additionally routes
the assessment: critical scores are blocked and never recorded, high scores
are queued for review, and every allowed booking is appended to the history
that the frequency heuristic reads on later calls.
"""

import logging
from datetime import datetime
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from checkout_risk.alerts import AlertDispatcher
from checkout_risk.geolocation import Geolocator
from checkout_risk.models import (
    ReviewEntry,
    RiskAction,
    RiskAssessment,
    RiskConfig,
    RiskDecision,
    TransactionData,
    TransactionHistoryRecord,
    epoch_millis,
)
from checkout_risk.screening.review import ReviewQueue
from checkout_risk.screening.rules.amount import check_unusual_amount
from checkout_risk.screening.rules.frequency import check_booking_frequency
from checkout_risk.screening.rules.location import check_location
from checkout_risk.screening.rules.time_of_day import check_unusual_time
from checkout_risk.screening.scorer import aggregate_results, route
from checkout_risk.storage.base import CounterStore
from checkout_risk.storage.keys import bookings_key, history_key, utc_now

logger = logging.getLogger(__name__)


class RiskScorer:
    """Scores bookings and routes them to allow, review or block."""

    def __init__(
        self,
        store: CounterStore,
        geolocator: Geolocator,
        review_queue: ReviewQueue,
        alerts: AlertDispatcher,
        config: Optional[RiskConfig] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store
        self.geolocator = geolocator
        self.review_queue = review_queue
        self.alerts = alerts
        self.config = config or RiskConfig()
        self.clock = clock

    def _local_time(self, now: datetime) -> datetime:
        if self.config.local_timezone:
            return now.astimezone(ZoneInfo(self.config.local_timezone))
        return now.astimezone()

    async def assess_transaction(self, data: TransactionData) -> RiskAssessment:
        """Score ``data`` without side effects."""
        config = self.config
        now = self.clock()

        rule_results = [
            check_unusual_amount(
                amount=data.amount,
                tour_id=data.tour_id,
                price_ranges=config.tour_price_ranges,
                weight=config.amount_weight,
            ),
            await check_booking_frequency(
                user_id=data.user_id,
                tour_id=data.tour_id,
                store=self.store,
                now_ms=epoch_millis(now),
                threshold=config.booking_frequency_threshold,
                window_days=config.booking_history_window_days,
                weight=config.frequency_weight,
            ),
            check_unusual_time(
                now=self._local_time(now),
                start_hour=config.normal_hours_start,
                end_hour=config.normal_hours_end,
                weight=config.time_weight,
            ),
            await check_location(
                ip=data.ip,
                geolocator=self.geolocator,
                allowed_countries=config.allowed_countries,
                weight=config.location_weight,
            ),
        ]

        return aggregate_results(rule_results)

    async def screen(self, data: TransactionData) -> RiskDecision:
        """Assess ``data`` and apply the routing policy."""
        assessment = await self.assess_transaction(data)
        action = route(
            assessment.score,
            high_threshold=self.config.high_risk_threshold,
            critical_threshold=self.config.critical_risk_threshold,
        )

        if action is RiskAction.BLOCK:
            logger.warning(
                "Critical risk transaction blocked for booking %s: %s",
                data.booking_id,
                {**data.model_dump(by_alias=True), "riskAssessment": assessment.model_dump()},
            )
            self.alerts.dispatch_alert(
                {**data.model_dump(by_alias=True), "riskScore": assessment.score},
                "Critical risk transaction",
            )
            return RiskDecision(assessment=assessment, action=action)

        timestamp = epoch_millis(self.clock())
        record = TransactionHistoryRecord(
            **data.model_dump(),
            risk_score=assessment.score,
            risk_factors=assessment.factors,
            timestamp=timestamp,
        )

        if action is RiskAction.REVIEW:
            logger.warning(
                "High risk transaction detected for booking %s: score=%d factors=%s",
                data.booking_id,
                assessment.score,
                assessment.factors,
            )
            await self.review_queue.enqueue_for_review(ReviewEntry(**record.model_dump()))
            self.alerts.dispatch_alert(
                record.model_dump(by_alias=True, exclude_none=True),
                "High risk transaction",
            )

        await self._store_transaction(record)
        return RiskDecision(assessment=assessment, action=action)

    async def _store_transaction(self, record: TransactionHistoryRecord) -> None:
        member = record.model_dump_json(by_alias=True, exclude_none=True)
        # Audit trail per user, plus the per-tour index the frequency rule counts
        await self.store.add_to_sorted_set(history_key(record.user_id), record.timestamp, member)
        await self.store.add_to_sorted_set(
            bookings_key(record.user_id, record.tour_id), record.timestamp, member
        )
