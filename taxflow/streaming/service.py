"""
Import service: the entry point callers use to run imports.

Owns the session registry and wires sessions, event channels and the batch
engine together. Streaming imports run as background tasks; the caller
consumes events through an ImportStream and may cancel by session id from
anywhere.
"""

import asyncio
from pathlib import Path
from typing import AsyncIterator, Sequence

from taxflow.batch.engine import BatchImportEngine, ImportOutcome
from taxflow.batch.readers import CSVOrderReader
from taxflow.config import ImportSettings
from taxflow.core.jurisdiction import JurisdictionResolver
from taxflow.core.models import ImportSummary, RawOrderRow
from taxflow.observability.logger import get_logger
from taxflow.observability.metrics import MetricsCollector
from taxflow.warehouse.order_store import OrderStore

from .channel import EventChannel
from .events import ErrorEvent, ImportEventBase, SessionEvent
from .session import ImportSession, SessionRegistry, SessionState

logger = get_logger(__name__)


class ImportStream:
    """
    Consumer handle for a running streaming import.

    Iterate it to receive events in order; the iteration ends after the
    terminal event.
    """

    def __init__(self, session: ImportSession, channel: EventChannel, task: asyncio.Task):
        self.session = session
        self._channel = channel
        self._task = task

    @property
    def session_id(self) -> str:
        return self.session.session_id

    def __aiter__(self) -> AsyncIterator[ImportEventBase]:
        return self._channel.__aiter__()

    async def wait(self) -> ImportOutcome | None:
        """
        Wait for the run to finish.

        Returns:
            The outcome, or None if the import failed on an unexpected error
        """
        return await self._task

    async def aclose(self) -> None:
        """
        Abandon the stream: cancel the session, drain pending events and
        wait for the run (including rollback) to finish.
        """
        if not self.session.state.is_terminal:
            self.session.token.cancel()
        async for _ in self._channel:
            pass
        await self._task


class ImportService:
    """
    Runs synchronous and streaming imports against one store.
    """

    def __init__(
        self,
        store: OrderStore,
        resolver: JurisdictionResolver,
        registry: SessionRegistry | None = None,
        settings: ImportSettings | None = None,
        metrics: MetricsCollector | None = None,
    ):
        """
        Initialize the import service.

        Args:
            store: Order store shared by every import
            resolver: Jurisdiction resolution strategy
            registry: Live session registry
            settings: Engine tunables
            metrics: Metrics collector
        """
        self.store = store
        self.resolver = resolver
        self.registry = registry or SessionRegistry()
        self.settings = settings or ImportSettings()
        self.metrics = metrics or MetricsCollector()
        self.reader = CSVOrderReader()
        self.engine = BatchImportEngine(
            store=store,
            resolver=resolver,
            chunk_size=self.settings.chunk_size,
            max_reported_errors=self.settings.max_reported_errors,
            metrics=self.metrics,
        )

    def parse_csv(self, source: str | bytes | Path) -> list[RawOrderRow]:
        """
        Parse CSV text, bytes or a file path into rows.

        Raises:
            ParseError: If the source is malformed
        """
        if isinstance(source, Path):
            return self.reader.read_path(source)
        if isinstance(source, bytes):
            return self.reader.read_bytes(source)
        return self.reader.read_text(source)

    async def import_synchronously(self, rows: Sequence[RawOrderRow]) -> ImportSummary:
        """
        Import rows without a session: no progress events, no cancellation,
        no session tag on inserted rows.
        """
        outcome = await self.engine.run(rows)
        return outcome.summary

    async def start_streaming_import(self, rows: Sequence[RawOrderRow]) -> ImportStream:
        """
        Start a streaming import in the background.

        The first event on the returned stream is always the session event.
        """
        session = self.registry.create()
        channel = EventChannel(maxsize=self.settings.event_queue_size)
        await channel.publish(SessionEvent(session_id=session.session_id))
        self.metrics.session_started()

        task = asyncio.create_task(
            self._run_session(session, channel, rows),
            name=f"import-{session.session_id}",
        )
        return ImportStream(session, channel, task)

    def cancel_session(self, session_id: str) -> None:
        """
        Request cancellation of a live streaming import.

        Takes effect at the next chunk boundary.

        Raises:
            SessionNotFound: If the session is unknown or already finished
        """
        self.registry.cancel(session_id)

    async def _run_session(
        self,
        session: ImportSession,
        channel: EventChannel,
        rows: Sequence[RawOrderRow],
    ) -> ImportOutcome | None:
        outcome = None
        try:
            outcome = await self.engine.run(rows, session=session, channel=channel)
        except Exception as e:
            logger.error(
                f"Import session {session.session_id} failed: {e}",
                exc_info=True,
                extra={"session_id": session.session_id},
            )
            if not session.state.is_terminal:
                session.transition(SessionState.FAILED)
            await channel.publish(ErrorEvent(message=str(e)))
        finally:
            self.registry.discard(session.session_id)
            await channel.close()
            self.metrics.session_finished(
                session.state.value,
                rolled_back=outcome.rolled_back if outcome is not None else 0,
            )
        return outcome
