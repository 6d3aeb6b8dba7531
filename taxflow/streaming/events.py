"""
Progress events emitted by an import.

A stream is always: one SessionEvent (streaming mode only), one
ProgressEvent per processed row with a strictly increasing counter, then
exactly one terminal event (done, cancelled or error).
"""

from typing import Annotated, Any, ClassVar, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from taxflow.core.models import RowError


class ImportEventBase(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    terminal: ClassVar[bool] = False

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

    def to_sse(self) -> str:
        """Render as one server-sent-events frame: "data: {json}" + blank line."""
        return f"data: {self.model_dump_json(by_alias=True)}\n\n"


class SessionEvent(ImportEventBase):
    type: Literal["session"] = "session"
    session_id: str = Field(..., alias="sessionId")


class ProgressEvent(ImportEventBase):
    type: Literal["progress"] = "progress"
    processed: int = Field(..., ge=1)
    id: str


class DoneEvent(ImportEventBase):
    terminal: ClassVar[bool] = True

    type: Literal["done"] = "done"
    success: int = Field(..., ge=0)
    failed: int = Field(..., ge=0)
    errors: list[RowError] = Field(default_factory=list)


class CancelledEvent(ImportEventBase):
    terminal: ClassVar[bool] = True

    type: Literal["cancelled"] = "cancelled"
    rolled_back: int = Field(..., ge=0, alias="rolledBack")


class ErrorEvent(ImportEventBase):
    """Terminal event for an import that died on an unexpected error."""

    terminal: ClassVar[bool] = True

    type: Literal["error"] = "error"
    message: str


ImportEvent = Annotated[
    Union[SessionEvent, ProgressEvent, DoneEvent, CancelledEvent, ErrorEvent],
    Field(discriminator="type"),
]

_event_adapter = TypeAdapter(ImportEvent)


def parse_event(data: dict[str, Any] | str) -> ImportEventBase:
    """
    Rebuild a typed event from its dict or JSON form (consumer side).
    """
    if isinstance(data, str):
        return _event_adapter.validate_json(data)
    return _event_adapter.validate_python(data)
