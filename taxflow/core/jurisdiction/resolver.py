"""
Jurisdiction resolution strategies.

Both strategies reject coordinates outside the coarse New York box first.
The bounding-box strategy is offline and instant; the geocoding strategy asks
the Census geocoder and degrades to the bounding-box table on any failure,
trading accuracy for availability: the row still gets taxed.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from taxflow.core.exceptions import GeocodingError, OutOfRegion, ResolutionFallback
from taxflow.core.models import JurisdictionRate
from taxflow.observability.logger import get_logger

from .census_client import CensusGeocoderClient
from .rates import COUNTY_RATES, FALLBACK_RATE, JURISDICTION_BOXES, is_in_new_york

logger = get_logger(__name__)


@dataclass(frozen=True)
class JurisdictionResolution:
    """Resolved rate plus the fallback warning, if the lookup degraded."""

    jurisdiction: JurisdictionRate
    fallback: ResolutionFallback | None = None


def ensure_in_region(lat: float, lon: float) -> None:
    """
    Raise OutOfRegion unless the coordinates pass the coarse state check.
    """
    if not is_in_new_york(lat, lon):
        raise OutOfRegion("coordinates", "Coordinates outside New York State")


class JurisdictionResolver(ABC):
    """Base class for all resolution strategies."""

    strategy: str = "abstract"

    async def resolve(self, lat: float, lon: float) -> JurisdictionResolution:
        """
        Resolve coordinates to a tax-rate record.

        Raises:
            OutOfRegion: If the coordinates are outside New York State
        """
        ensure_in_region(lat, lon)
        return await self._lookup(lat, lon)

    @abstractmethod
    async def _lookup(self, lat: float, lon: float) -> JurisdictionResolution:
        pass

    async def aclose(self) -> None:
        """Release any held resources."""


class BoundingBoxResolver(JurisdictionResolver):
    """
    Resolves against the static, ordered county box table.

    The first matching box wins. Points in no box get the statewide default.
    """

    strategy = "bounding_box"

    def __init__(self, boxes=JURISDICTION_BOXES, rates=COUNTY_RATES, default: JurisdictionRate = FALLBACK_RATE):
        self.boxes = boxes
        self.rates = rates
        self.default = default

    def match(self, lat: float, lon: float) -> JurisdictionRate:
        for fips, box in self.boxes:
            if box.contains(lat, lon):
                return self.rates[fips]
        logger.debug(f"No county box contains ({lat}, {lon}); using statewide default")
        return self.default

    async def _lookup(self, lat: float, lon: float) -> JurisdictionResolution:
        return JurisdictionResolution(jurisdiction=self.match(lat, lon))


class GeocodingResolver(JurisdictionResolver):
    """
    Resolves via the Census geocoder, mapping the county FIPS code through
    the static rate table.
    """

    strategy = "census"

    def __init__(
        self,
        client: CensusGeocoderClient,
        fallback: BoundingBoxResolver | None = None,
        rates=COUNTY_RATES,
    ):
        self.client = client
        self.fallback = fallback or BoundingBoxResolver()
        self.rates = rates

    async def _lookup(self, lat: float, lon: float) -> JurisdictionResolution:
        try:
            fips = await self.client.lookup_county_fips(lat, lon)
        except GeocodingError as e:
            return self._degrade(lat, lon, "geocoder_unavailable", str(e))

        if fips is None:
            return self._degrade(lat, lon, "no_county", "Geocoder returned no county")

        rate = self.rates.get(fips)
        if rate is None:
            return self._degrade(lat, lon, "unmapped_fips", f"Unknown county FIPS {fips}")

        return JurisdictionResolution(jurisdiction=rate)

    def _degrade(self, lat: float, lon: float, reason: str, detail: str) -> JurisdictionResolution:
        logger.warning(
            f"Jurisdiction lookup for ({lat}, {lon}) fell back to static table: {detail}",
            extra={"reason": reason, "latitude": lat, "longitude": lon},
        )
        return JurisdictionResolution(
            jurisdiction=self.fallback.match(lat, lon),
            fallback=ResolutionFallback(reason=reason, detail=detail),
        )

    async def aclose(self) -> None:
        await self.client.aclose()
