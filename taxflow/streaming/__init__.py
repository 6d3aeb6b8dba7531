"""
Streaming imports: sessions, cancellation, progress events.
"""

from .channel import ChannelClosed, EventChannel
from .events import (
    CancelledEvent,
    DoneEvent,
    ErrorEvent,
    ImportEvent,
    ImportEventBase,
    ProgressEvent,
    SessionEvent,
    parse_event,
)
from .session import CancellationToken, ImportSession, SessionRegistry, SessionState, new_session_id

__all__ = [
    "CancellationToken",
    "ImportSession",
    "SessionRegistry",
    "SessionState",
    "new_session_id",
    "EventChannel",
    "ChannelClosed",
    "ImportEvent",
    "ImportEventBase",
    "SessionEvent",
    "ProgressEvent",
    "DoneEvent",
    "CancelledEvent",
    "ErrorEvent",
    "parse_event",
]
