"""
TimestampValidator - order times must be ISO-8601.
"""

from datetime import datetime
from typing import Any

from taxflow.core.exceptions import InvalidTimestamp

from .base_validator import BaseValidator


class TimestampValidator(BaseValidator):
    """
    Checks that a timestamp string parses as ISO-8601. A trailing "Z" is
    accepted as UTC. The original text is returned unchanged.
    """

    def __init__(self, field_name: str = "timestamp", parameters: dict[str, Any] | None = None):
        super().__init__(field_name, parameters)

    def validate(self, value: Any, record: dict[str, Any]) -> str:
        text = str(value).strip()
        candidate = text[:-1] + "+00:00" if text.endswith(("Z", "z")) else text
        try:
            datetime.fromisoformat(candidate)
        except ValueError:
            raise InvalidTimestamp(
                self.field_name,
                f"{self.field_name} is not an ISO-8601 time: {text!r}"
            ) from None
        return text

    @property
    def rule_type(self) -> str:
        return "timestamp"
