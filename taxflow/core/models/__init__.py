"""
Core data models for the order tax import pipeline.

All models use Pydantic for runtime validation and type safety.
"""

from .import_summary import ImportSummary, RowError
from .jurisdiction import BoundingBox, JurisdictionRate
from .order_record import OrderRecord
from .raw_order_row import OPTIONAL_COLUMNS, REQUIRED_COLUMNS, RawOrderRow
from .tax_breakdown import TaxBreakdown

__all__ = [
    "RawOrderRow",
    "REQUIRED_COLUMNS",
    "OPTIONAL_COLUMNS",
    "BoundingBox",
    "JurisdictionRate",
    "TaxBreakdown",
    "OrderRecord",
    "RowError",
    "ImportSummary",
]
