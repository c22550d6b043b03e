"""Checkout Risk Gate API.

Real-time gate in front of the booking commit path. A velocity limiter
enforces hard amount and frequency ceilings per email and IP, and a risk
scorer rates each booking on amount, booking frequency, time of day and
geography, routing it to allow, review or block.

Run with:
    python3 -m uvicorn checkout_risk.main:app --host 0.0.0.0 --port 8000
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Callable, Optional

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from checkout_risk.alerts import AlertDispatcher, AlertSink, LoggingAlertSink, WebhookAlertSink
from checkout_risk.config import Settings, load_rule_configs
from checkout_risk.errors import CounterStoreError
from checkout_risk.geolocation import Geolocator, IpApiGeolocator
from checkout_risk.routes import review, risk, rules, velocity
from checkout_risk.screening.engine import RiskScorer
from checkout_risk.screening.review import ReviewQueue
from checkout_risk.screening.velocity import VelocityLimiter
from checkout_risk.storage.base import CounterStore
from checkout_risk.storage.keys import utc_now
from checkout_risk.storage.memory import MemoryCounterStore
from checkout_risk.storage.redis_store import RedisCounterStore

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    """Set up the root logger with a clean console format."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _build_store(settings: Settings) -> CounterStore:
    if settings.COUNTER_STORE == "memory":
        logger.warning("Using in-memory counter store; counters are not shared between instances")
        return MemoryCounterStore()
    return RedisCounterStore.from_url(settings.REDIS_URL)


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[CounterStore] = None,
    geolocator: Optional[Geolocator] = None,
    alert_sinks: Optional[list[AlertSink]] = None,
    clock: Callable[[], datetime] = utc_now,
) -> FastAPI:
    """Build the application.

    Collaborators passed in are used as-is; anything omitted is built from
    ``settings`` when the application starts.
    """
    settings = settings or Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Wire the engine components onto app state and close clients on shutdown."""
        configure_logging(settings.LOG_LEVEL)
        velocity_config, risk_config = load_rule_configs(settings.DATA_DIR)

        counter_store = store or _build_store(settings)
        country_lookup = geolocator or IpApiGeolocator(
            base_url=settings.GEOLOCATION_URL,
            timeout_seconds=settings.GEOLOCATION_TIMEOUT_SECONDS,
        )
        sinks = alert_sinks
        if sinks is None:
            sinks = [LoggingAlertSink()]
            if settings.ALERT_WEBHOOK_URL:
                sinks.append(
                    WebhookAlertSink(
                        settings.ALERT_WEBHOOK_URL,
                        timeout_seconds=settings.ALERT_TIMEOUT_SECONDS,
                    )
                )

        alerts = AlertDispatcher(sinks)
        review_queue = ReviewQueue(counter_store)

        app.state.store = counter_store
        app.state.alerts = alerts
        app.state.review_queue = review_queue
        app.state.limiter = VelocityLimiter(
            store=counter_store,
            review_queue=review_queue,
            alerts=alerts,
            config=velocity_config,
            clock=clock,
        )
        app.state.scorer = RiskScorer(
            store=counter_store,
            geolocator=country_lookup,
            review_queue=review_queue,
            alerts=alerts,
            config=risk_config,
            clock=clock,
        )
        logger.info("Checkout risk gate started (counter store: %s)", type(counter_store).__name__)
        yield

        await alerts.drain()
        # Only close clients this app created
        if geolocator is None:
            await country_lookup.aclose()
        if alert_sinks is None:
            for sink in sinks:
                if isinstance(sink, WebhookAlertSink):
                    await sink.aclose()
        if store is None and isinstance(counter_store, RedisCounterStore):
            await counter_store.close()

    app = FastAPI(
        title="Checkout Risk Gate API",
        description=(
            "Velocity limits and rule-based risk scoring for booking checkouts. "
            "Decides whether a purchase attempt is allowed, flagged for review, "
            "or blocked."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    # Mount all API routers
    app.include_router(velocity.router)
    app.include_router(risk.router)
    app.include_router(review.router)
    app.include_router(rules.router)

    @app.get("/health")
    async def health_check() -> JSONResponse:
        """Health check that also verifies the counter store is reachable."""
        try:
            await app.state.store.ping()
        except CounterStoreError:
            return JSONResponse(status_code=503, content={"status": "degraded"})
        return JSONResponse(status_code=200, content={"status": "healthy"})

    return app


app = create_app()
