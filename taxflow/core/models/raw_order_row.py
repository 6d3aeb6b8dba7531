"""
RawOrderRow model: the strict boundary schema for one imported row.
"""

from pydantic import BaseModel, ConfigDict, Field

REQUIRED_COLUMNS = ("id", "latitude", "longitude", "subtotal")
OPTIONAL_COLUMNS = ("timestamp",)


class RawOrderRow(BaseModel):
    """
    One row exactly as it came out of the source, every value still a string.

    Unknown fields are rejected so a renamed column surfaces as an error
    instead of a silently missing value.

    Attributes:
        id: Caller-supplied order identifier (integer as text)
        latitude: Delivery latitude as text
        longitude: Delivery longitude as text
        subtotal: Pre-tax amount as text
        timestamp: Optional ISO-8601 timestamp
        line_number: Source line the row was read from (1 = header)
    """

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    id: str
    latitude: str
    longitude: str
    subtotal: str
    timestamp: str | None = None
    line_number: int | None = Field(None, ge=1)
