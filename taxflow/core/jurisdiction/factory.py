"""
Builds the configured jurisdiction resolver.
"""

from taxflow.config.settings import ImportSettings

from .census_client import CensusGeocoderClient
from .resolver import BoundingBoxResolver, GeocodingResolver, JurisdictionResolver


def build_resolver(settings: ImportSettings) -> JurisdictionResolver:
    """
    Create the resolver named by settings.resolver_strategy.

    The census strategy owns its httpx client; call aclose() on the
    returned resolver when done.
    """
    if settings.resolver_strategy == "census":
        client = CensusGeocoderClient(
            base_url=settings.census_base_url,
            timeout=settings.geocoder_timeout_seconds,
        )
        return GeocodingResolver(client)
    return BoundingBoxResolver()
