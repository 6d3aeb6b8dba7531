"""
Row validator: turns a RawOrderRow into typed, checked values.

Checks run in a fixed order: every numeric parse first, then the subtotal
sign, then the region, then the timestamp when one is given. A malformed
row therefore always reports InvalidNumber, even if it would also be out
of region.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal

from taxflow.core.models import RawOrderRow

from .amount_validator import PositiveAmountValidator
from .numeric_validator import NumericFieldValidator
from .region_validator import RegionValidator
from .timestamp_validator import TimestampValidator


@dataclass(frozen=True)
class ValidatedRow:
    """A row that passed validation, with parsed values."""

    order_id: int
    latitude: float
    longitude: float
    subtotal: Decimal
    timestamp: str
    original_id: str


def utc_timestamp() -> str:
    """Current time as ISO-8601 UTC with millisecond precision."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class RowValidator:
    """
    Validates rows independently of persistence.

    Raises the first failing rule's RowValidationError subclass.
    """

    def __init__(self):
        self.numeric_rules = [
            NumericFieldValidator("id", {"kind": "int"}),
            NumericFieldValidator("latitude", {"kind": "float"}),
            NumericFieldValidator("longitude", {"kind": "float"}),
            NumericFieldValidator("subtotal", {"kind": "decimal"}),
        ]
        self.subtotal_rule = PositiveAmountValidator("subtotal")
        self.region_rule = RegionValidator()
        self.timestamp_rule = TimestampValidator()

    def validate(self, row: RawOrderRow) -> ValidatedRow:
        """
        Validate a raw row.

        Raises:
            InvalidNumber: A numeric field is blank or unparseable
            InvalidSubtotal: The subtotal is not positive
            OutOfRegion: The coordinates are outside New York State
            InvalidTimestamp: The timestamp is not ISO-8601
        """
        raw = row.model_dump()
        values: dict = {}
        for rule in self.numeric_rules:
            values[rule.field_name] = rule.validate(raw.get(rule.field_name), values)

        return self._finish(values, row.timestamp, row.id)

    def validate_values(
        self,
        latitude: float | str,
        longitude: float | str,
        subtotal: Decimal | float | str,
        timestamp: str | None = None,
        order_id: int = 0,
    ) -> ValidatedRow:
        """
        Validate values supplied directly (manual order entry) instead of a
        source row. Same rules, same order.
        """
        supplied = {"latitude": latitude, "longitude": longitude, "subtotal": subtotal}
        values: dict = {"id": order_id}
        for rule in self.numeric_rules[1:]:
            value = supplied[rule.field_name]
            values[rule.field_name] = rule.validate(None if value is None else str(value), values)

        return self._finish(values, timestamp, str(order_id))

    def _finish(self, values: dict, timestamp: str | None, original_id: str) -> ValidatedRow:
        subtotal = self.subtotal_rule.validate(values["subtotal"], values)
        lat, lon = self.region_rule.validate((values["latitude"], values["longitude"]), values)
        if timestamp:
            timestamp = self.timestamp_rule.validate(timestamp, values)

        return ValidatedRow(
            order_id=values["id"],
            latitude=lat,
            longitude=lon,
            subtotal=subtotal,
            timestamp=timestamp or utc_timestamp(),
            original_id=original_id,
        )
