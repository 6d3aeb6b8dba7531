"""
Import sessions, their cancellation tokens and the registry that tracks
live sessions by id.

Sessions are in-memory only and die with the process.
"""

import secrets
import threading
import time
from datetime import datetime, timezone
from enum import Enum

from taxflow.core.exceptions import SessionNotFound
from taxflow.observability.logger import get_logger

logger = get_logger(__name__)


class SessionState(str, Enum):
    CREATED = "created"
    PROCESSING = "processing"
    DONE = "done"
    CANCELLED = "cancelled"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionState.DONE, SessionState.CANCELLED, SessionState.FAILED)


_LIVE_TARGETS = {SessionState.PROCESSING, SessionState.DONE, SessionState.CANCELLED, SessionState.FAILED}
ALLOWED_TRANSITIONS = {
    SessionState.CREATED: _LIVE_TARGETS,
    SessionState.PROCESSING: _LIVE_TARGETS,
    SessionState.DONE: set(),
    SessionState.CANCELLED: set(),
    SessionState.FAILED: set(),
}


class CancellationToken:
    """
    One-shot cancellation flag.

    Written once by the cancel command (from any thread), polled by the
    engine at chunk boundaries.
    """

    def __init__(self):
        self._event = threading.Event()
        self._lock = threading.Lock()

    def cancel(self) -> bool:
        """
        Set the flag.

        Returns:
            True if this call cancelled the token, False if it already was
        """
        with self._lock:
            if self._event.is_set():
                return False
            self._event.set()
            return True

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


def new_session_id() -> str:
    """Millisecond timestamp plus 48 random bits, unique per invocation."""
    return f"{int(time.time() * 1000)}-{secrets.token_hex(6)}"


class ImportSession:
    """
    Handle for one streaming import: identity, cancel switch and state.
    """

    def __init__(self, session_id: str | None = None):
        self.session_id = session_id or new_session_id()
        self.token = CancellationToken()
        self.state = SessionState.CREATED
        self.created_at = datetime.now(timezone.utc)

    @property
    def cancel_requested(self) -> bool:
        return self.token.cancelled

    def transition(self, new_state: SessionState) -> None:
        """
        Move to a new state.

        Raises:
            ValueError: If the transition is not allowed (e.g. out of a
                terminal state)
        """
        if new_state not in ALLOWED_TRANSITIONS[self.state]:
            raise ValueError(f"Invalid session transition {self.state.value} -> {new_state.value}")
        self.state = new_state

    def __repr__(self) -> str:
        return f"ImportSession(id={self.session_id}, state={self.state.value})"


class SessionRegistry:
    """
    Maps live session ids to sessions.

    One registry per application, passed to whatever starts imports. All
    access goes through a lock because cancel commands may arrive from
    other threads.
    """

    def __init__(self):
        self._sessions: dict[str, ImportSession] = {}
        self._lock = threading.Lock()

    def create(self) -> ImportSession:
        with self._lock:
            session = ImportSession()
            while session.session_id in self._sessions:
                session = ImportSession()
            self._sessions[session.session_id] = session
        logger.info(f"Import session created: {session.session_id}", extra={"session_id": session.session_id})
        return session

    def get(self, session_id: str) -> ImportSession:
        """
        Raises:
            SessionNotFound: If no live session has this id
        """
        with self._lock:
            session = self._sessions.get(session_id)
        if session is None or session.state.is_terminal:
            raise SessionNotFound(session_id)
        return session

    def cancel(self, session_id: str) -> ImportSession:
        """
        Request cancellation of a live session.

        Repeated cancels of a session that is still winding down succeed.

        Raises:
            SessionNotFound: If the session is unknown or already terminal
        """
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None or session.state.is_terminal:
                raise SessionNotFound(session_id)
            first = session.token.cancel()

        if first:
            logger.info(f"Cancellation requested for session {session_id}", extra={"session_id": session_id})
        return session

    def discard(self, session_id: str) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)

    @property
    def active_count(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._sessions
