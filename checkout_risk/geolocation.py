"""IP to country lookup."""

from typing import Optional, Protocol

import httpx

from checkout_risk.errors import GeolocationError


class Geolocator(Protocol):
    async def resolve_country(self, ip: str) -> str:
        """Return the ISO 3166-1 alpha-2 code for ``ip``.

        Raises GeolocationError when the country cannot be determined.
        """
        ...


class IpApiGeolocator:
    """Looks countries up on an ipapi.co-style endpoint.

    ``GET {base_url}/{ip}/country/`` answers with the bare country code as
    plain text.
    """

    def __init__(
        self,
        base_url: str = "https://ipapi.co",
        client: Optional[httpx.AsyncClient] = None,
        timeout_seconds: float = 2.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout_seconds)

    async def resolve_country(self, ip: str) -> str:
        try:
            response = await self._client.get(f"{self.base_url}/{ip}/country/")
            response.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise GeolocationError(f"lookup failed for {ip}: {exc}") from exc

        country = response.text.strip().upper()
        # Private and reserved addresses come back as e.g. "Undefined"
        if len(country) != 2 or not country.isalpha():
            raise GeolocationError(f"no country for {ip}: {response.text.strip()!r}")
        return country

    async def aclose(self) -> None:
        await self._client.aclose()
