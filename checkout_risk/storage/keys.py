"""Counter store key naming.

Velocity counters are fixed windows: the calendar date (UTC) and, for the
hourly counter, the hour of day are part of the key, so a new window starts
with a fresh key.
"""

from datetime import datetime, timezone

SUSPICIOUS_QUEUE = "suspicious_transactions"
REVIEW_QUEUE = "review_queue"
TRANSACTION_HISTORY = "transaction_history"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def normalize_identifier(identifier: str) -> str:
    """Lowercase and strip an email/IP so variants share one counter."""
    return identifier.strip().lower()


def _bucket_time(timestamp_ms: int) -> datetime:
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)


def date_bucket(timestamp_ms: int) -> str:
    return _bucket_time(timestamp_ms).strftime("%Y-%m-%d")


def daily_key(metric: str, identifier: str, timestamp_ms: int) -> str:
    """Key for a per-day counter, e.g. ``velocity:daily_amount:a@b.c:2026-02-22``."""
    return (
        f"velocity:{metric}:{normalize_identifier(identifier)}:"
        f"{date_bucket(timestamp_ms)}"
    )


def hourly_key(identifier: str, timestamp_ms: int) -> str:
    """Key for the per-hour transaction count, e.g. ``velocity:hourly:a@b.c:2026-02-22:13``."""
    hour = _bucket_time(timestamp_ms).hour
    return (
        f"velocity:hourly:{normalize_identifier(identifier)}:"
        f"{date_bucket(timestamp_ms)}:{hour}"
    )


def history_key(user_id: str) -> str:
    return f"{TRANSACTION_HISTORY}:{user_id}"


def bookings_key(user_id: str, tour_id: str) -> str:
    return f"bookings:{user_id}:{tour_id}"
