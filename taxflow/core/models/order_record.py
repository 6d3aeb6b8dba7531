"""
OrderRecord model representing a persisted order with its tax breakdown.
"""

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field

from .tax_breakdown import TaxBreakdown


class OrderRecord(BaseModel):
    """
    An order as stored, keyed by the caller-supplied id.

    Attributes:
        id: Order identifier (not auto-generated; collisions are upserts)
        latitude / longitude: Delivery coordinates
        subtotal: Pre-tax amount, 2 fractional digits
        timestamp: ISO-8601 order time
        zip_code: Not resolved by the geocoder; kept for schema parity
        import_session_id: Streaming import session that inserted the row,
            None for manual orders and synchronous imports
    """

    id: int
    latitude: float
    longitude: float
    subtotal: Decimal = Field(..., gt=0, decimal_places=2)
    timestamp: str
    zip_code: str | None = None
    state: str = "NY"
    tax_region: str
    county_fips: str | None = None
    state_rate: Decimal
    county_rate: Decimal
    city_rate: Decimal
    special_rate: Decimal
    composite_tax_rate: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    jurisdictions: list[str] = Field(default_factory=list)
    import_session_id: str | None = None

    @classmethod
    def from_breakdown(
        cls,
        order_id: int,
        latitude: float,
        longitude: float,
        subtotal: Decimal,
        timestamp: str,
        breakdown: TaxBreakdown,
        import_session_id: str | None = None,
    ) -> "OrderRecord":
        return cls(
            id=order_id,
            latitude=latitude,
            longitude=longitude,
            subtotal=subtotal,
            timestamp=timestamp,
            import_session_id=import_session_id,
            **breakdown.model_dump(),
        )

    def to_fields(self, include_session: bool = True) -> dict[str, Any]:
        """
        Column values for the store, without the id.

        Args:
            include_session: False when updating an existing row, so its
                original import_session_id is left untouched
        """
        exclude = {"id"} if include_session else {"id", "import_session_id"}
        return self.model_dump(exclude=exclude)
