"""Velocity limiter: hard per-identifier ceilings on amount and frequency.

Checks run in a fixed order and the first failing check returns at once:
  1. Single transaction amount (no counters touched)
  2. Daily amount per email (incremented before the comparison)
  3. Hourly transaction count per email (read only)
  4. Daily transaction count per email and per IP (both incremented)
Only a request that passes every check bumps the hourly counter. Because
the sequence is not transactional, a request rejected at step 2 or 4 has
already added to the counters it touched.

Every rejection is pushed to the suspicious-transaction queue and alerted.
Counter store failures propagate: a request that cannot be counted is never
allowed.
"""

import asyncio
import logging
from datetime import datetime
from typing import Callable, Optional

from checkout_risk.alerts import AlertDispatcher
from checkout_risk.models import (
    SuspiciousEntry,
    VelocityCheckRequest,
    VelocityConfig,
    VelocityDecision,
    epoch_millis,
)
from checkout_risk.screening.review import ReviewQueue
from checkout_risk.storage.base import CounterStore
from checkout_risk.storage.keys import daily_key, hourly_key, utc_now

logger = logging.getLogger(__name__)


class VelocityLimiter:
    """Enforces amount and frequency ceilings backed by the counter store."""

    def __init__(
        self,
        store: CounterStore,
        review_queue: ReviewQueue,
        alerts: AlertDispatcher,
        config: Optional[VelocityConfig] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store
        self.review_queue = review_queue
        self.alerts = alerts
        self.config = config or VelocityConfig()
        self.clock = clock

    async def check_velocity(self, request: VelocityCheckRequest) -> VelocityDecision:
        """Decide whether ``request`` stays within the velocity ceilings.

        Counters are bucketed by ``request.timestamp`` in UTC.
        """
        config = self.config

        if request.amount > config.max_amount_per_transaction:
            return await self._reject(
                request,
                "Amount exceeds per-transaction limit",
                "Transaction amount too high",
            )

        amount_key = daily_key("daily_amount", request.email, request.timestamp)
        daily_amount = await self.store.increment(amount_key, float(request.amount))
        if daily_amount > config.max_daily_amount:
            if not config.count_rejected_amount:
                await self.store.increment(amount_key, -float(request.amount))
            return await self._reject(
                request,
                "Daily amount limit exceeded",
                "Daily transaction limit exceeded",
            )

        hourly = hourly_key(request.email, request.timestamp)
        hourly_count = await self._read_count(hourly)
        if hourly_count >= config.max_transactions_per_hour:
            return await self._reject(
                request,
                "Hourly transaction count exceeded",
                "Too many transactions per hour",
            )

        email_count, ip_count = await asyncio.gather(
            self.store.increment(daily_key("daily_count", request.email, request.timestamp)),
            self.store.increment(daily_key("daily_count", request.ip, request.timestamp)),
        )
        if email_count > config.max_transactions_per_email:
            return await self._reject(
                request,
                "Daily email transaction count exceeded",
                "Too many transactions for this email today",
            )
        if ip_count > config.max_transactions_per_ip:
            return await self._reject(
                request,
                "Daily IP transaction count exceeded",
                "Too many transactions from this IP today",
            )

        await self._track_hourly(hourly)

        # Large amounts are allowed but still go to review
        if request.amount >= config.suspicious_amount_threshold:
            await self._flag(request, "Suspicious amount")

        return VelocityDecision(allowed=True)

    async def _read_count(self, key: str) -> int:
        raw = await self.store.get(key)
        return int(float(raw)) if raw else 0

    async def _track_hourly(self, key: str) -> None:
        count = await self.store.increment(key)
        # The window runs from the first write, later increments keep it
        if count == 1:
            await self.store.expire(key, self.config.hourly_window_seconds)

    async def _flag(self, request: VelocityCheckRequest, reason: str) -> None:
        entry = SuspiciousEntry(
            **request.model_dump(),
            reason=reason,
            flagged_at=epoch_millis(self.clock()),
        )
        await self.review_queue.enqueue_for_review(entry)
        self.alerts.dispatch_alert(entry.model_dump(by_alias=True), reason)

    async def _reject(
        self,
        request: VelocityCheckRequest,
        flag_reason: str,
        reason: str,
    ) -> VelocityDecision:
        logger.warning("Velocity check rejected %s: %s", request.email, flag_reason)
        await self._flag(request, flag_reason)
        return VelocityDecision(allowed=False, reason=reason)
