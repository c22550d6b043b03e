"""Tests for the geography rule and the IP geolocation client."""

import httpx
import pytest

from checkout_risk.errors import GeolocationError
from checkout_risk.geolocation import IpApiGeolocator
from checkout_risk.models import DEFAULT_ALLOWED_COUNTRIES
from checkout_risk.screening.rules.location import check_location
from tests.conftest import FakeGeolocator


class TestCheckLocation:
    @pytest.mark.asyncio
    async def test_allowed_country(self):
        result = await check_location("203.0.113.7", FakeGeolocator("JP"), DEFAULT_ALLOWED_COUNTRIES)
        assert result.triggered is False
        assert result.details["country"] == "JP"

    @pytest.mark.asyncio
    async def test_country_outside_allow_list(self):
        result = await check_location("203.0.113.7", FakeGeolocator("BR"), DEFAULT_ALLOWED_COUNTRIES)
        assert result.triggered is True
        assert result.score_delta == 25
        assert result.factor == "Unusual location"
        assert result.details["allowedCountries"] == list(DEFAULT_ALLOWED_COUNTRIES)

    @pytest.mark.asyncio
    async def test_lookup_failure_fails_open(self):
        geolocator = FakeGeolocator(error="timeout")
        result = await check_location("203.0.113.7", geolocator, DEFAULT_ALLOWED_COUNTRIES)
        assert result.triggered is False
        assert result.score_delta == 0
        assert result.details == {"error": "Failed to check location"}
        assert result.error == "timeout"


def make_geolocator(handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return IpApiGeolocator(base_url="https://ipapi.test/", client=client)


class TestIpApiGeolocator:
    @pytest.mark.asyncio
    async def test_resolves_country(self):
        def handler(request):
            assert request.url == httpx.URL("https://ipapi.test/8.8.8.8/country/")
            return httpx.Response(200, text="us\n")

        assert await make_geolocator(handler).resolve_country("8.8.8.8") == "US"

    @pytest.mark.asyncio
    async def test_http_error_raises(self):
        geolocator = make_geolocator(lambda request: httpx.Response(429, text="Too many"))
        with pytest.raises(GeolocationError):
            await geolocator.resolve_country("8.8.8.8")

    @pytest.mark.asyncio
    async def test_network_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(GeolocationError):
            await make_geolocator(handler).resolve_country("8.8.8.8")

    @pytest.mark.asyncio
    async def test_undefined_country_raises(self):
        geolocator = make_geolocator(lambda request: httpx.Response(200, text="Undefined"))
        with pytest.raises(GeolocationError):
            await geolocator.resolve_country("10.0.0.1")

    @pytest.mark.asyncio
    async def test_unbuildable_url_raises(self):
        geolocator = make_geolocator(lambda request: httpx.Response(200, text="US"))
        with pytest.raises(GeolocationError):
            await geolocator.resolve_country("1" * 70_000)

    @pytest.mark.asyncio
    async def test_unbuildable_url_fails_open_in_rule(self):
        geolocator = make_geolocator(lambda request: httpx.Response(200, text="US"))
        result = await check_location("1" * 70_000, geolocator, DEFAULT_ALLOWED_COUNTRIES)
        assert result.triggered is False
        assert result.details == {"error": "Failed to check location"}
