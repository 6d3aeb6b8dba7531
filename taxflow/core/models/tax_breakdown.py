"""
TaxBreakdown model: the computed tax for one order.
"""

from decimal import Decimal

from pydantic import BaseModel, Field


class TaxBreakdown(BaseModel):
    """
    Result of applying a jurisdiction's rates to a subtotal.

    Attributes:
        state: Two-letter state code
        tax_region: Name of the resolved jurisdiction
        county_fips: County FIPS code when known
        state_rate / county_rate / city_rate / special_rate: Rate components
        composite_tax_rate: Sum of the components
        tax_amount: round2(subtotal * composite_tax_rate)
        total_amount: round2(subtotal + tax_amount)
        jurisdictions: Breadcrumb of applied jurisdictions
    """

    state: str = "NY"
    tax_region: str
    county_fips: str | None = None
    state_rate: Decimal
    county_rate: Decimal
    city_rate: Decimal
    special_rate: Decimal
    composite_tax_rate: Decimal
    tax_amount: Decimal = Field(..., ge=0)
    total_amount: Decimal = Field(..., ge=0)
    jurisdictions: list[str] = Field(default_factory=list)

    class Config:
        json_schema_extra = {
            "example": {
                "state": "NY",
                "tax_region": "New York City (Manhattan)",
                "county_fips": "36061",
                "state_rate": "0.04",
                "county_rate": "0.045",
                "city_rate": "0.00375",
                "special_rate": "0",
                "composite_tax_rate": "0.08875",
                "tax_amount": "10.65",
                "total_amount": "130.65",
                "jurisdictions": ["New York State", "New York City", "MCTD"]
            }
        }
