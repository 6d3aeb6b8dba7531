"""
Exception taxonomy for the order import pipeline.

Batch-level errors (ParseError) abort an import before any write.
Row-level errors (RowValidationError subclasses, PersistenceFailure) are
recorded against the row and the batch continues.
"""

from dataclasses import dataclass


class TaxflowError(Exception):
    """Base class for all pipeline errors."""


class ParseError(TaxflowError):
    """Raised when the row source cannot be parsed. Nothing is persisted."""

    def __init__(self, message: str, line_number: int | None = None):
        self.message = message
        self.line_number = line_number
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)


class RowValidationError(TaxflowError):
    """A single row failed validation."""

    code = "invalid_row"

    def __init__(self, field_name: str, message: str):
        self.field_name = field_name
        self.message = message
        super().__init__(message)


class InvalidNumber(RowValidationError):
    code = "invalid_number"


class InvalidSubtotal(RowValidationError):
    code = "invalid_subtotal"


class OutOfRegion(RowValidationError):
    code = "out_of_region"


class InvalidTimestamp(RowValidationError):
    code = "invalid_timestamp"


class GeocodingError(TaxflowError):
    """The external geocoding service failed, timed out or returned garbage."""


class SessionNotFound(TaxflowError):
    """Cancellation targeted a session that is unknown or already finished."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Import session not found: {session_id}")


class PersistenceFailure(TaxflowError):
    """Writing one row to the store failed. Only that row is failed."""

    code = "persistence_failure"

    def __init__(self, order_id: int, cause: Exception):
        self.order_id = order_id
        self.cause = cause
        super().__init__(f"Failed to persist order {order_id}: {cause}")


@dataclass(frozen=True)
class ResolutionFallback:
    """
    Non-fatal warning: the jurisdiction lookup degraded to the static table.

    Attributes:
        reason: One of "geocoder_unavailable", "no_county", "unmapped_fips"
        detail: Human-readable context for logs
    """

    reason: str
    detail: str
