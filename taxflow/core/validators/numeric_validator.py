"""
NumericFieldValidator - parses string fields into numbers.
"""

import math
from decimal import Decimal, InvalidOperation
from typing import Any

from taxflow.core.exceptions import InvalidNumber

from .base_validator import BaseValidator


class NumericFieldValidator(BaseValidator):
    """
    Parses a string field as a number.

    Parameters:
    - kind: "int", "float" or "decimal" (default "float")

    Blank values, non-numeric text, NaN and infinities all fail with
    InvalidNumber.
    """

    KINDS = ("int", "float", "decimal")

    def __init__(self, field_name: str, parameters: dict[str, Any] | None = None):
        super().__init__(field_name, parameters)
        self.kind = self.parameters.get("kind", "float")
        if self.kind not in self.KINDS:
            raise ValueError(f"Unsupported numeric kind: {self.kind}")

    def validate(self, value: Any, record: dict[str, Any]) -> int | float | Decimal:
        if value is None or (isinstance(value, str) and not value.strip()):
            raise InvalidNumber(self.field_name, f"{self.field_name} is missing")

        text = str(value).strip()
        try:
            if self.kind == "int":
                return int(text)
            if self.kind == "decimal":
                parsed = Decimal(text)
                if not parsed.is_finite():
                    raise ValueError("not finite")
                return parsed
            parsed = float(text)
            if not math.isfinite(parsed):
                raise ValueError("not finite")
            return parsed
        except (ValueError, InvalidOperation):
            raise InvalidNumber(
                self.field_name,
                f"{self.field_name} is not a valid number: {text!r}"
            ) from None

    @property
    def rule_type(self) -> str:
        return "numeric"
