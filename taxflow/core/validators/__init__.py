"""
Row validation rules.

Provides validators for numeric parsing, positive currency amounts and the
coarse region check, ISO-8601 timestamps, plus the RowValidator that runs them in order.
"""

from .amount_validator import PositiveAmountValidator
from .base_validator import BaseValidator
from .numeric_validator import NumericFieldValidator
from .region_validator import RegionValidator
from .row_validator import RowValidator, ValidatedRow, utc_timestamp
from .timestamp_validator import TimestampValidator

__all__ = [
    "BaseValidator",
    "NumericFieldValidator",
    "PositiveAmountValidator",
    "RegionValidator",
    "RowValidator",
    "TimestampValidator",
    "ValidatedRow",
    "utc_timestamp",
]
