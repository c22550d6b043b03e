"""Shared fixtures for the test suite."""

import json
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from checkout_risk.alerts import AlertDispatcher
from checkout_risk.config import Settings
from checkout_risk.errors import CounterStoreError, GeolocationError
from checkout_risk.main import create_app
from checkout_risk.models import (
    RiskConfig,
    TransactionData,
    VelocityCheckRequest,
    VelocityConfig,
    epoch_millis,
)
from checkout_risk.screening.engine import RiskScorer
from checkout_risk.screening.review import ReviewQueue
from checkout_risk.screening.velocity import VelocityLimiter
from checkout_risk.storage.memory import MemoryCounterStore

# Noon UTC, inside normal booking hours
FIXED_NOW = datetime(2026, 2, 22, 12, 0, tzinfo=timezone.utc)


class FakeGeolocator:
    """Resolves every IP to one country, or fails every lookup."""

    def __init__(self, country="JP", error=None):
        self.country = country
        self.error = error
        self.calls = []

    async def resolve_country(self, ip):
        self.calls.append(ip)
        if self.error:
            raise GeolocationError(self.error)
        return self.country


class RecordingAlertSink:
    def __init__(self):
        self.sent = []

    async def send(self, payload):
        self.sent.append(payload)


class FailingCounterStore(MemoryCounterStore):
    """Counter store whose backend is unreachable."""

    async def _fail(self, *args, **kwargs):
        raise CounterStoreError("counter store unavailable")

    increment = _fail
    get = _fail
    expire = _fail
    append_to_list = _fail
    list_range = _fail
    add_to_sorted_set = _fail
    count_sorted_set_members = _fail
    ping = _fail


@pytest.fixture
def velocity_config():
    return VelocityConfig()


@pytest.fixture
def risk_config():
    return RiskConfig(local_timezone="UTC")


@pytest.fixture
def store():
    return MemoryCounterStore()


@pytest.fixture
def alert_sink():
    return RecordingAlertSink()


@pytest.fixture
def alerts(alert_sink):
    return AlertDispatcher([alert_sink])


@pytest.fixture
def review_queue(store):
    return ReviewQueue(store)


@pytest.fixture
def geolocator():
    return FakeGeolocator("JP")


@pytest.fixture
def limiter(store, review_queue, alerts, velocity_config):
    return VelocityLimiter(
        store=store,
        review_queue=review_queue,
        alerts=alerts,
        config=velocity_config,
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def scorer(store, geolocator, review_queue, alerts, risk_config):
    return RiskScorer(
        store=store,
        geolocator=geolocator,
        review_queue=review_queue,
        alerts=alerts,
        config=risk_config,
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def make_client(tmp_path):
    """Build TestClients over isolated apps; all are closed after the test."""
    (tmp_path / "rules_config.json").write_text(
        json.dumps({"risk": {"local_timezone": "UTC"}})
    )
    clients = []

    def _make(country="JP", now=FIXED_NOW, store=None):
        app = create_app(
            settings=Settings(COUNTER_STORE="memory", DATA_DIR=tmp_path),
            store=store or MemoryCounterStore(),
            geolocator=FakeGeolocator(country),
            alert_sinks=[RecordingAlertSink()],
            clock=lambda: now,
        )
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield _make
    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def client(make_client):
    return make_client()


def make_velocity_request(
    email="guest@example.com",
    ip="203.0.113.7",
    amount=10000,
    timestamp=FIXED_NOW,
) -> VelocityCheckRequest:
    return VelocityCheckRequest(
        ip=ip,
        email=email,
        amount=amount,
        timestamp=epoch_millis(timestamp),
    )


def make_transaction(
    booking_id="bk-1001",
    tour_id="morning-tour",
    amount=10000,
    email="guest@example.com",
    ip="203.0.113.7",
    user_id="user-1",
) -> TransactionData:
    return TransactionData(
        booking_id=booking_id,
        tour_id=tour_id,
        amount=amount,
        email=email,
        ip=ip,
        user_id=user_id,
    )
