"""
RegionValidator - coordinates must fall inside the supported state.
"""

from typing import Any

from taxflow.core.jurisdiction import ensure_in_region

from .base_validator import BaseValidator


class RegionValidator(BaseValidator):
    """
    Applies the resolver's coarse bounds check to a (lat, lon) pair, so rows
    that would be rejected at resolution time fail during validation.
    """

    def __init__(self, field_name: str = "coordinates", parameters: dict[str, Any] | None = None):
        super().__init__(field_name, parameters)

    def validate(self, value: Any, record: dict[str, Any]) -> tuple[float, float]:
        lat, lon = value
        ensure_in_region(lat, lon)
        return lat, lon

    @property
    def rule_type(self) -> str:
        return "region"
