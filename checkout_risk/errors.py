"""Exception types raised by the checkout risk engine.

Policy rejections are not exceptions: the limiter and scorer return them as
decisions. Exceptions here describe failures of collaborators.
"""


class CheckoutRiskError(Exception):
    """Base class for engine errors."""


class CounterStoreError(CheckoutRiskError):
    """The counter store could not complete an operation.

    Always fatal for the current request: the engine never allows a
    transaction it could not count.
    """


class GeolocationError(CheckoutRiskError):
    """The IP geolocation lookup failed or returned nothing usable."""


class AlertDeliveryError(CheckoutRiskError):
    """An alert sink could not deliver a notification."""
