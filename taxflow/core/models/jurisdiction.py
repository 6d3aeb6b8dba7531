"""
Jurisdiction models: tax-rate records and the bounding boxes that locate them.
"""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class BoundingBox(BaseModel):
    """Axis-aligned latitude/longitude rectangle (inclusive edges)."""

    model_config = ConfigDict(frozen=True)

    min_lat: float
    max_lat: float
    min_lon: float
    max_lon: float

    @model_validator(mode="after")
    def check_ordered(self) -> "BoundingBox":
        if self.min_lat > self.max_lat or self.min_lon > self.max_lon:
            raise ValueError("bounding box minimums must not exceed maximums")
        return self

    def contains(self, lat: float, lon: float) -> bool:
        return self.min_lat <= lat <= self.max_lat and self.min_lon <= lon <= self.max_lon


class JurisdictionRate(BaseModel):
    """
    A named tax authority and its four rate components.

    The composite rate is always derived from the components, so
    composite == state + county + city + special holds by construction.

    Attributes:
        name: Tax region name, e.g. "New York City (Manhattan)"
        state_rate: State base rate
        county_rate: County / NYC local rate
        city_rate: MCTD surcharge or city surtax
        special_rate: Special district rate
        county_fips: 5-digit county FIPS code, None for the statewide fallback
        jurisdictions: Ordered human-readable breadcrumb
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    state_rate: Decimal = Field(..., ge=0, lt=1)
    county_rate: Decimal = Field(..., ge=0, lt=1)
    city_rate: Decimal = Field(Decimal("0"), ge=0, lt=1)
    special_rate: Decimal = Field(Decimal("0"), ge=0, lt=1)
    county_fips: str | None = Field(None, pattern=r"^\d{5}$")
    jurisdictions: tuple[str, ...] = ()

    @property
    def composite_rate(self) -> Decimal:
        return self.state_rate + self.county_rate + self.city_rate + self.special_rate
