"""
Jurisdiction resolution: coordinates to New York sales-tax rates.
"""

from .census_client import CensusGeocoderClient
from .rates import COUNTY_RATES, FALLBACK_RATE, JURISDICTION_BOXES, NY_BOUNDS, is_in_new_york
from .resolver import (
    BoundingBoxResolver,
    GeocodingResolver,
    JurisdictionResolution,
    JurisdictionResolver,
    ensure_in_region,
)

__all__ = [
    "COUNTY_RATES",
    "FALLBACK_RATE",
    "JURISDICTION_BOXES",
    "NY_BOUNDS",
    "is_in_new_york",
    "ensure_in_region",
    "CensusGeocoderClient",
    "JurisdictionResolution",
    "JurisdictionResolver",
    "BoundingBoxResolver",
    "GeocodingResolver",
]
