"""
Outcome models for an import run.
"""

from pydantic import BaseModel, Field


class RowError(BaseModel):
    """
    A failed row, as reported back to the caller.

    Attributes:
        original_id: The id value from the source row, verbatim
        code: Machine-readable error code (e.g. "invalid_subtotal")
        error: Human-readable message
    """

    original_id: str
    code: str
    error: str


class ImportSummary(BaseModel):
    """
    Totals for a completed import.

    Attributes:
        success: Rows persisted
        failed: Rows rejected
        errors: First failures, truncated to the configured sample size
        warnings: Rows that succeeded on a fallback jurisdiction
    """

    success: int = Field(0, ge=0)
    failed: int = Field(0, ge=0)
    errors: list[RowError] = Field(default_factory=list)
    warnings: int = Field(0, ge=0)

    @property
    def processed(self) -> int:
        return self.success + self.failed

    class Config:
        json_schema_extra = {
            "example": {
                "success": 98,
                "failed": 2,
                "errors": [
                    {"original_id": "17", "code": "invalid_subtotal", "error": "subtotal must be positive"},
                    {"original_id": "42", "code": "out_of_region", "error": "Coordinates outside New York State"}
                ],
                "warnings": 0
            }
        }
