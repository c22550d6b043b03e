"""Hand-off of flagged transactions to the human review queues.

Two append-only lists live in the counter store:
  - ``suspicious_transactions``: attempts flagged by the velocity limiter
  - ``review_queue``: bookings the risk scorer allowed but wants reviewed

Entries are pushed with a single atomic list push, so concurrent engine
instances never lose each other's entries. The external review workflow is
the only consumer.
"""

import json
import logging
from typing import Any, Union

from checkout_risk.models import ReviewEntry, SuspiciousEntry
from checkout_risk.storage.base import CounterStore
from checkout_risk.storage.keys import REVIEW_QUEUE, SUSPICIOUS_QUEUE

logger = logging.getLogger(__name__)

QueuedEntry = Union[SuspiciousEntry, ReviewEntry]


class ReviewQueue:
    """Writes flagged entries to the review lists and reads them back for triage."""

    def __init__(self, store: CounterStore) -> None:
        self.store = store

    async def enqueue_for_review(self, entry: QueuedEntry) -> None:
        """Append ``entry`` to the list matching its type."""
        queue = SUSPICIOUS_QUEUE if isinstance(entry, SuspiciousEntry) else REVIEW_QUEUE
        await self.store.append_to_list(
            queue, entry.model_dump_json(by_alias=True, exclude_none=True)
        )
        logger.info("Queued entry for review on %s", queue)

    async def pending(self, queue: str, limit: int = 50) -> list[dict[str, Any]]:
        """Return the newest ``limit`` entries from ``queue``."""
        raw_entries = await self.store.list_range(queue, 0, limit - 1)
        return [json.loads(raw) for raw in raw_entries]
