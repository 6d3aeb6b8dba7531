"""
Async client for the US Census Bureau geocoder.

Resolves (lat, lon) to a 5-digit county FIPS code. The service is free and
needs no API key. See https://geocoding.geo.census.gov/geocoder/
"""

from typing import Any

import httpx

from taxflow.core.exceptions import GeocodingError
from taxflow.observability.logger import get_logger

logger = get_logger(__name__)

DEFAULT_BASE_URL = "https://geocoding.geo.census.gov/geocoder"
DEFAULT_TIMEOUT_SECONDS = 8.0


class CensusGeocoderClient:
    """
    Thin wrapper around the geographies/coordinates endpoint.

    Every request carries a fixed timeout, so a slow upstream surfaces as a
    GeocodingError instead of a hung import.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize the geocoder client.

        Args:
            base_url: Geocoder root URL
            timeout: Per-request timeout in seconds
            client: Optional preconfigured httpx client (tests inject a
                MockTransport here); owned by the caller when given
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))

    async def lookup_county_fips(self, lat: float, lon: float) -> str | None:
        """
        Resolve coordinates to a county FIPS code.

        Args:
            lat: Latitude
            lon: Longitude

        Returns:
            5-digit FIPS string, or None if the point is not in any county

        Raises:
            GeocodingError: On network failure, timeout, HTTP error or a
                response that cannot be decoded
        """
        # The geocoder takes x=lon, y=lat
        params = {
            "x": str(lon),
            "y": str(lat),
            "benchmark": "Public_AR_Current",
            "vintage": "Current_Current",
            "layers": "Counties",
            "format": "json",
        }
        url = f"{self.base_url}/geographies/coordinates"

        try:
            response = await self._client.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except httpx.TimeoutException as e:
            raise GeocodingError(f"Geocoder timed out after {self.timeout}s") from e
        except httpx.HTTPStatusError as e:
            raise GeocodingError(f"Geocoder returned HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise GeocodingError(f"Geocoder request failed: {e}") from e
        except ValueError as e:
            raise GeocodingError(f"Geocoder returned invalid JSON: {e}") from e

        return self._extract_fips(payload)

    @staticmethod
    def _extract_fips(payload: Any) -> str | None:
        try:
            counties = payload["result"]["geographies"].get("Counties") or []
        except (KeyError, TypeError, AttributeError) as e:
            raise GeocodingError("Geocoder response has no geographies section") from e

        if not counties:
            return None

        county = counties[0]
        # GEOID is state (2) + county (3)
        fips = county.get("GEOID") or f"{county.get('STATE', '')}{county.get('COUNTY', '')}"
        return fips or None

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
        return False
