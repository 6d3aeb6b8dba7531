"""
PositiveAmountValidator - currency amounts must be strictly positive.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from taxflow.core.exceptions import InvalidSubtotal

from .base_validator import BaseValidator

CENT = Decimal("0.01")

# Largest value the orders table stores (NUMERIC(12, 2))
MAX_AMOUNT = Decimal("9999999999.99")


class PositiveAmountValidator(BaseValidator):
    """
    Validates that an already parsed Decimal amount is greater than zero and
    normalises it to currency precision (2 fractional digits, half-up).

    Parameters:
    - max_amount: upper bound, inclusive (default MAX_AMOUNT)
    """

    def validate(self, value: Any, record: dict[str, Any]) -> Decimal:
        amount = Decimal(value)
        if amount <= 0:
            raise InvalidSubtotal(self.field_name, f"{self.field_name} must be positive")

        max_amount = Decimal(self.parameters.get("max_amount", MAX_AMOUNT))
        if amount > max_amount:
            raise InvalidSubtotal(self.field_name, f"{self.field_name} must not exceed {max_amount}")

        try:
            amount = amount.quantize(CENT, rounding=ROUND_HALF_UP)
        except InvalidOperation:
            raise InvalidSubtotal(
                self.field_name,
                f"{self.field_name} cannot be rounded to cents: {value}"
            ) from None
        if amount <= 0:
            # e.g. "0.001" rounds to zero cents
            raise InvalidSubtotal(self.field_name, f"{self.field_name} must be at least 0.01")
        return amount

    @property
    def rule_type(self) -> str:
        return "positive_amount"
