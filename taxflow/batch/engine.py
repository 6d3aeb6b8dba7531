"""
Batch import engine.

Coordinates the flow: validate → resolve → calculate → persist → report.

Rows are taken in fixed-size chunks. Inside a chunk, validation, resolution
and calculation run concurrently (the chunk size bounds in-flight geocoder
calls). Persistence is strictly sequential in source order, one row at a
time, for the whole batch: the store is single-writer.

Cancellation is polled before each chunk. An in-flight chunk always runs to
completion. On cancel, every row inserted under the session is deleted;
rows that already existed and were merely updated keep the update.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Sequence

from taxflow.core.exceptions import PersistenceFailure, ResolutionFallback, RowValidationError
from taxflow.core.jurisdiction import JurisdictionResolver
from taxflow.core.models import ImportSummary, OrderRecord, RawOrderRow, RowError
from taxflow.core.tax import calculate
from taxflow.core.validators import RowValidator
from taxflow.observability.logger import get_logger, log_context, log_operation
from taxflow.observability.metrics import MetricsCollector
from taxflow.streaming.channel import EventChannel
from taxflow.streaming.events import CancelledEvent, DoneEvent, ImportEventBase, ProgressEvent
from taxflow.streaming.session import ImportSession, SessionState
from taxflow.warehouse.order_store import OrderStore

logger = get_logger(__name__)

DEFAULT_CHUNK_SIZE = 5
MAX_REPORTED_ERRORS = 20


@dataclass(frozen=True)
class PreparedOrder:
    """A row that validated and resolved, ready to persist."""

    original_id: str
    record: OrderRecord
    fallback: ResolutionFallback | None = None


@dataclass(frozen=True)
class ImportOutcome:
    """What a run produced, in both event and summary form."""

    summary: ImportSummary
    terminal_event: ImportEventBase
    cancelled: bool = False
    rolled_back: int = 0


class BatchImportEngine:
    """
    Runs one import over a row set.

    The engine holds no per-run state, so one instance can serve several
    concurrent imports that share the store.
    """

    def __init__(
        self,
        store: OrderStore,
        resolver: JurisdictionResolver,
        validator: RowValidator | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        max_reported_errors: int = MAX_REPORTED_ERRORS,
        metrics: MetricsCollector | None = None,
    ):
        """
        Initialize the engine.

        Args:
            store: Order store (called from a worker thread, one call at a time)
            resolver: Jurisdiction resolution strategy
            validator: Row validator
            chunk_size: Rows resolved concurrently per chunk
            max_reported_errors: Error sample size in the final summary
            metrics: Metrics collector
        """
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be at least 1, got {chunk_size}")

        self.store = store
        self.resolver = resolver
        self.validator = validator or RowValidator()
        self.chunk_size = chunk_size
        self.max_reported_errors = max_reported_errors
        self.metrics = metrics or MetricsCollector()

    async def run(
        self,
        rows: Sequence[RawOrderRow],
        session: ImportSession | None = None,
        channel: EventChannel | None = None,
    ) -> ImportOutcome:
        """
        Import rows.

        Args:
            rows: Parsed source rows
            session: Streaming session; None for a synchronous import (no
                session tag, no cancellation)
            channel: Where progress and terminal events go, if anywhere

        Returns:
            ImportOutcome with totals and the terminal event
        """
        mode = "stream" if session is not None else "sync"
        session_id = session.session_id if session is not None else None

        success = 0
        failed = 0
        warnings = 0
        processed = 0
        errors: list[RowError] = []
        cancelled = False

        with log_context(session_id=session_id), log_operation(
            "Import rows",
            logger=logger,
            mode=mode,
            rows=len(rows),
            session_id=session_id,
            strategy=self.resolver.strategy,
        ):
            for start in range(0, len(rows), self.chunk_size):
                if session is not None and session.cancel_requested:
                    cancelled = True
                    break
                if session is not None:
                    session.transition(SessionState.PROCESSING)

                chunk = rows[start:start + self.chunk_size]
                chunk_started = time.monotonic()
                prepared = await asyncio.gather(*(self._prepare(row) for row in chunk))
                self.metrics.record_chunk(mode, time.monotonic() - chunk_started)

                for row, item in zip(chunk, prepared):
                    if isinstance(item, PreparedOrder):
                        try:
                            with log_context(order_id=row.id):
                                await self._persist(item.record, session_id)
                        except PersistenceFailure as e:
                            logger.error(str(e), exc_info=e.cause, extra={"order_id": row.id})
                            item = RowError(original_id=row.id, code=e.code, error=str(e))

                    if isinstance(item, RowError):
                        failed += 1
                        if len(errors) < self.max_reported_errors:
                            errors.append(item)
                        self.metrics.record_row(mode, success=False, code=item.code)
                    else:
                        success += 1
                        if item.fallback is not None:
                            warnings += 1
                            self.metrics.record_fallback(item.fallback.reason)
                        self.metrics.record_row(mode, success=True)

                    processed += 1
                    if channel is not None:
                        await channel.publish(ProgressEvent(processed=processed, id=row.id))

            summary = ImportSummary(success=success, failed=failed, errors=errors, warnings=warnings)

            if cancelled:
                rolled_back = await self._rollback(session_id)
                session.transition(SessionState.CANCELLED)
                outcome = ImportOutcome(
                    summary=summary,
                    terminal_event=CancelledEvent(rolled_back=rolled_back),
                    cancelled=True,
                    rolled_back=rolled_back,
                )
            else:
                if session is not None:
                    session.transition(SessionState.DONE)
                outcome = ImportOutcome(
                    summary=summary,
                    terminal_event=DoneEvent(success=success, failed=failed, errors=errors),
                )

        if channel is not None:
            await channel.publish(outcome.terminal_event)
        return outcome

    async def _prepare(self, row: RawOrderRow) -> PreparedOrder | RowError:
        """Validate, resolve and calculate one row. Touches no shared state."""
        try:
            with log_context(order_id=row.id):
                valid = self.validator.validate(row)
                resolution = await self.resolver.resolve(valid.latitude, valid.longitude)
        except RowValidationError as e:
            return RowError(original_id=row.id, code=e.code, error=e.message)

        breakdown = calculate(valid.subtotal, resolution.jurisdiction)
        record = OrderRecord.from_breakdown(
            order_id=valid.order_id,
            latitude=valid.latitude,
            longitude=valid.longitude,
            subtotal=valid.subtotal,
            timestamp=valid.timestamp,
            breakdown=breakdown,
        )
        return PreparedOrder(original_id=row.id, record=record, fallback=resolution.fallback)

    async def _persist(self, record: OrderRecord, session_id: str | None) -> None:
        started = time.monotonic()
        try:
            operation = await asyncio.to_thread(self._write, record, session_id)
        except Exception as e:
            raise PersistenceFailure(record.id, e) from e
        self.metrics.record_persist(operation, time.monotonic() - started)

    def _write(self, record: OrderRecord, session_id: str | None) -> str:
        """
        Upsert by id. An existing row keeps its original session tag; a new
        row is tagged with the current session.
        """
        if self.store.exists(record.id):
            self.store.upsert(record.id, record.to_fields(include_session=False))
            return "update"

        tagged = record.model_copy(update={"import_session_id": session_id})
        self.store.upsert(record.id, tagged.to_fields())
        return "insert"

    async def _rollback(self, session_id: str) -> int:
        rolled_back = await asyncio.to_thread(self.store.delete_where_session, session_id)
        logger.info(
            f"Rolled back {rolled_back} rows for cancelled session {session_id}",
            extra={"session_id": session_id, "rolled_back": rolled_back},
        )
        return rolled_back
