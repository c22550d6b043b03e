"""Best-effort alerting for flagged and blocked transactions.

Alerting is observability, not correctness: the dispatcher schedules
delivery in the background and a failing sink is logged and otherwise
ignored, so a broken webhook can never fail a checkout.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Optional, Protocol

import httpx

from checkout_risk.errors import AlertDeliveryError

logger = logging.getLogger(__name__)


class AlertSink(Protocol):
    async def send(self, payload: dict[str, Any]) -> None:
        ...


class LoggingAlertSink:
    """Writes alerts to the application log."""

    def __init__(self, log: logging.Logger = logger) -> None:
        self.log = log

    async def send(self, payload: dict[str, Any]) -> None:
        self.log.error("Suspicious transaction detected: %s", payload)


class WebhookAlertSink:
    """POSTs alerts as JSON to an HTTP endpoint."""

    def __init__(
        self,
        url: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout_seconds: float = 2.0,
    ) -> None:
        self.url = url
        self._client = client or httpx.AsyncClient(timeout=timeout_seconds)

    async def send(self, payload: dict[str, Any]) -> None:
        try:
            response = await self._client.post(self.url, json=payload)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise AlertDeliveryError(f"webhook delivery failed: {exc}") from exc

    async def aclose(self) -> None:
        await self._client.aclose()


class AlertDispatcher:
    """Fans an alert out to every sink without blocking the caller."""

    def __init__(self, sinks: Optional[list[AlertSink]] = None) -> None:
        self.sinks: list[AlertSink] = sinks if sinks is not None else [LoggingAlertSink()]
        self._pending: set[asyncio.Task] = set()

    def dispatch_alert(self, entry: dict[str, Any], reason: str) -> None:
        """Schedule delivery of an alert for ``entry``.

        Must be called from a running event loop. Returns immediately.
        """
        payload = {
            **entry,
            "reason": reason,
            "alertedAt": datetime.now(timezone.utc).isoformat(),
        }
        for sink in self.sinks:
            task = asyncio.create_task(self._deliver(sink, payload))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

    async def _deliver(self, sink: AlertSink, payload: dict[str, Any]) -> None:
        try:
            await sink.send(payload)
        except Exception:
            logger.exception("Alert delivery via %s failed", type(sink).__name__)

    async def drain(self) -> None:
        """Wait for every scheduled delivery to finish."""
        if self._pending:
            await asyncio.gather(*list(self._pending))
