"""
Unit tests for the batch import engine.

Covers chunked processing, row-level failures, idempotent upserts, progress
ordering and cancellation with rollback.
"""

import asyncio
from decimal import Decimal

import pytest

from taxflow.batch import BatchImportEngine
from taxflow.core.jurisdiction import BoundingBoxResolver, JurisdictionResolver
from taxflow.streaming import (
    CancelledEvent,
    DoneEvent,
    EventChannel,
    ImportSession,
    ProgressEvent,
    SessionState,
)
from taxflow.warehouse.order_store import InMemoryOrderStore


async def collect(channel: EventChannel) -> list:
    await channel.close()
    return [event async for event in channel]


class TestSynchronousRun:
    """Tests for runs without a session"""

    async def test_all_rows_succeed(self, memory_store, bbox_resolver, valid_rows):
        engine = BatchImportEngine(memory_store, bbox_resolver)
        outcome = await engine.run(valid_rows)

        assert outcome.summary.success == 12
        assert outcome.summary.failed == 0
        assert outcome.cancelled is False
        assert memory_store.count() == 12

    async def test_manhattan_order_persisted(self, memory_store, bbox_resolver, row_factory):
        """Test the persisted record carries the full tax breakdown"""
        engine = BatchImportEngine(memory_store, bbox_resolver)
        await engine.run([row_factory(order_id=1, subtotal="120.00", timestamp="2025-11-04T10:17:04.000Z")])

        record = memory_store.get(1)
        assert record.tax_region == "New York City (Manhattan)"
        assert record.tax_amount == Decimal("10.65")
        assert record.total_amount == Decimal("130.65")
        assert record.timestamp == "2025-11-04T10:17:04.000Z"
        assert record.import_session_id is None

    async def test_row_failures_do_not_stop_batch(self, memory_store, bbox_resolver, mixed_rows):
        engine = BatchImportEngine(memory_store, bbox_resolver)
        outcome = await engine.run(mixed_rows)

        assert outcome.summary.success == 2
        assert outcome.summary.failed == 3
        codes = {error.original_id: error.code for error in outcome.summary.errors}
        assert codes == {"2": "invalid_subtotal", "3": "out_of_region", "4": "invalid_number"}
        assert memory_store.exists(1)
        assert memory_store.exists(5)
        assert not memory_store.exists(2)

    async def test_negative_subtotal_error_entry(self, memory_store, bbox_resolver, row_factory):
        engine = BatchImportEngine(memory_store, bbox_resolver)
        outcome = await engine.run([row_factory(order_id=9, subtotal="-5")])

        error = outcome.summary.errors[0]
        assert error.original_id == "9"
        assert error.code == "invalid_subtotal"
        assert error.error == "subtotal must be positive"

    async def test_error_sample_is_truncated(self, memory_store, bbox_resolver, row_factory):
        rows = [row_factory(order_id=i, subtotal="0") for i in range(1, 31)]
        engine = BatchImportEngine(memory_store, bbox_resolver, max_reported_errors=20)
        outcome = await engine.run(rows)

        assert outcome.summary.failed == 30
        assert len(outcome.summary.errors) == 20
        assert [e.original_id for e in outcome.summary.errors] == [str(i) for i in range(1, 21)]

    async def test_rerun_is_idempotent(self, memory_store, bbox_resolver, valid_rows):
        """Test importing the same rows twice leaves one record per id"""
        engine = BatchImportEngine(memory_store, bbox_resolver)
        await engine.run(valid_rows)
        first = {i: memory_store.get(i) for i in range(1, 13)}
        outcome = await engine.run(valid_rows)

        assert outcome.summary.success == 12
        assert memory_store.count() == 12
        assert {i: memory_store.get(i) for i in range(1, 13)} == first

    async def test_duplicate_ids_last_write_wins(self, memory_store, bbox_resolver, row_factory):
        """Test persistence order follows source order within a batch"""
        rows = [row_factory(order_id=1, subtotal="10.00"), row_factory(order_id=1, subtotal="20.00")]
        engine = BatchImportEngine(memory_store, bbox_resolver, chunk_size=5)
        await engine.run(rows)

        assert memory_store.count() == 1
        assert memory_store.get(1).subtotal == Decimal("20.00")

    async def test_persistence_failure_fails_only_that_row(self, flaky_store_factory, bbox_resolver, row_factory):
        store = flaky_store_factory({2})
        engine = BatchImportEngine(store, bbox_resolver)
        outcome = await engine.run([row_factory(order_id=i) for i in (1, 2, 3)])

        assert outcome.summary.success == 2
        assert outcome.summary.failed == 1
        assert outcome.summary.errors[0].code == "persistence_failure"
        assert store.exists(1) and store.exists(3)

    async def test_huge_subtotal_fails_only_that_row(self, memory_store, bbox_resolver, row_factory):
        rows = [row_factory(order_id=1), row_factory(order_id=2, subtotal="1e26"), row_factory(order_id=3)]
        outcome = await BatchImportEngine(memory_store, bbox_resolver).run(rows)

        assert outcome.summary.success == 2
        assert outcome.summary.failed == 1
        assert outcome.summary.errors[0].original_id == "2"
        assert outcome.summary.errors[0].code == "invalid_subtotal"
        assert not memory_store.exists(2)

    async def test_malformed_timestamp_fails_only_that_row(self, memory_store, bbox_resolver, row_factory):
        rows = [row_factory(order_id=1), row_factory(order_id=2, timestamp="04/11/2025")]
        outcome = await BatchImportEngine(memory_store, bbox_resolver).run(rows)

        assert outcome.summary.success == 1
        assert outcome.summary.errors[0].code == "invalid_timestamp"

    async def test_empty_input(self, memory_store, bbox_resolver):
        outcome = await BatchImportEngine(memory_store, bbox_resolver).run([])
        assert outcome.summary.processed == 0
        assert isinstance(outcome.terminal_event, DoneEvent)

    def test_chunk_size_must_be_positive(self, memory_store, bbox_resolver):
        with pytest.raises(ValueError):
            BatchImportEngine(memory_store, bbox_resolver, chunk_size=0)


class TestStreamingRun:
    """Tests for runs with a session and event channel"""

    async def test_huge_subtotal_still_ends_done(self, memory_store, bbox_resolver, row_factory):
        """Test a row-level decimal overflow in a later chunk does not fail the session"""
        rows = [row_factory(order_id=i) for i in range(1, 6)]
        rows.append(row_factory(order_id=6, subtotal="1e26"))
        session = ImportSession()
        channel = EventChannel()

        outcome = await BatchImportEngine(memory_store, bbox_resolver, chunk_size=2).run(
            rows, session=session, channel=channel
        )
        events = await collect(channel)

        assert isinstance(events[-1], DoneEvent)
        assert (events[-1].success, events[-1].failed) == (5, 1)
        assert outcome.cancelled is False
        assert session.state is SessionState.DONE

    async def test_events_one_progress_per_row_then_done(self, memory_store, bbox_resolver, mixed_rows):
        session = ImportSession()
        channel = EventChannel()
        engine = BatchImportEngine(memory_store, bbox_resolver, chunk_size=2)

        await engine.run(mixed_rows, session=session, channel=channel)
        events = await collect(channel)

        progress = [e for e in events if isinstance(e, ProgressEvent)]
        assert [e.processed for e in progress] == [1, 2, 3, 4, 5]
        assert [e.id for e in progress] == ["1", "2", "3", "4", "5"]
        assert isinstance(events[-1], DoneEvent)
        assert sum(1 for e in events if e.terminal) == 1
        assert events[-1].success + events[-1].failed == len(progress)
        assert session.state is SessionState.DONE

    async def test_inserted_rows_are_tagged(self, memory_store, bbox_resolver, valid_rows):
        session = ImportSession()
        await BatchImportEngine(memory_store, bbox_resolver).run(valid_rows, session=session)

        assert memory_store.get(1).import_session_id == session.session_id

    async def test_update_keeps_original_tag(self, memory_store, bbox_resolver, row_factory):
        """Test an update by a later session does not re-tag the row"""
        engine = BatchImportEngine(memory_store, bbox_resolver)
        first = ImportSession()
        await engine.run([row_factory(order_id=1, subtotal="10.00")], session=first)

        second = ImportSession()
        await engine.run([row_factory(order_id=1, subtotal="99.00")], session=second)

        record = memory_store.get(1)
        assert record.subtotal == Decimal("99.00")
        assert record.import_session_id == first.session_id

    async def test_cancel_before_start_rolls_back_nothing(self, memory_store, bbox_resolver, valid_rows):
        session = ImportSession()
        session.token.cancel()
        channel = EventChannel()

        outcome = await BatchImportEngine(memory_store, bbox_resolver).run(valid_rows, session=session, channel=channel)
        events = await collect(channel)

        assert outcome.cancelled
        assert events == [CancelledEvent(rolled_back=0)]
        assert memory_store.count() == 0
        assert session.state is SessionState.CANCELLED

    async def test_cancel_mid_run_rolls_back_inserts(self, memory_store, slow_resolver, row_factory):
        """Test cancelling after the first chunk deletes that chunk's inserts"""
        # id 1 exists before the import and must survive the rollback
        memory_store.upsert(1, {"state": "NY", "total_amount": Decimal("1.00"), "import_session_id": "earlier"})

        rows = [row_factory(order_id=i) for i in range(1, 21)]
        session = ImportSession()
        channel = EventChannel(maxsize=100)
        engine = BatchImportEngine(memory_store, slow_resolver, chunk_size=5)

        async def cancel_after_first_chunk():
            async for event in channel:
                if isinstance(event, ProgressEvent) and event.processed == 5:
                    session.token.cancel()
                if event.terminal:
                    return event

        consumer = asyncio.create_task(cancel_after_first_chunk())
        outcome = await engine.run(rows, session=session, channel=channel)
        terminal = await consumer

        assert outcome.cancelled
        assert isinstance(terminal, CancelledEvent)
        # The chunk in flight when cancel arrived completes, then rollback
        assert outcome.summary.processed in (5, 10)
        assert terminal.rolled_back == outcome.summary.processed - 1
        assert memory_store.count() == 1
        assert memory_store.get(1).import_session_id == "earlier"
        assert slow_resolver.calls == outcome.summary.processed

    async def test_cancel_only_touches_own_session(self, memory_store, bbox_resolver, row_factory):
        """Test rollback leaves rows inserted by other sessions alone"""
        engine = BatchImportEngine(memory_store, bbox_resolver, chunk_size=1)
        other = ImportSession()
        await engine.run([row_factory(order_id=100)], session=other)

        session = ImportSession()
        channel = EventChannel()

        async def cancel_on_first_progress():
            async for event in channel:
                if isinstance(event, ProgressEvent):
                    session.token.cancel()

        consumer = asyncio.create_task(cancel_on_first_progress())
        outcome = await engine.run([row_factory(order_id=i) for i in (1, 2, 3)], session=session, channel=channel)
        await channel.close()
        await consumer

        assert outcome.cancelled
        assert memory_store.exists(100)
        assert not memory_store.exists(1)


class ChunkTrackingResolver(JurisdictionResolver):
    """Records how many lookups run together in each concurrency group"""

    def __init__(self):
        self.inner = BoundingBoxResolver()
        self.in_flight = 0
        self.groups: list[int] = []

    async def _lookup(self, lat, lon):
        if self.in_flight == 0:
            self.groups.append(0)
        self.in_flight += 1
        self.groups[-1] += 1
        await asyncio.sleep(0.005)
        self.in_flight -= 1
        return await self.inner._lookup(lat, lon)


class RecordingStore(InMemoryOrderStore):
    """Records upsert order and flags overlapping writes"""

    def __init__(self):
        super().__init__()
        self.writes: list[int] = []
        self.writing = False
        self.overlapped = False

    def upsert(self, order_id, fields):
        if self.writing:
            self.overlapped = True
        self.writing = True
        try:
            self.writes.append(order_id)
            return super().upsert(order_id, fields)
        finally:
            self.writing = False


class ShrinkingDelayResolver(JurisdictionResolver):
    """Each lookup sleeps less than the one before, so later rows finish first"""

    def __init__(self, first_delay: float = 0.08, step: float = 0.01):
        self.inner = BoundingBoxResolver()
        self.first_delay = first_delay
        self.step = step
        self.calls = 0
        self.completed: list[int] = []

    async def _lookup(self, lat, lon):
        call = self.calls
        self.calls += 1
        await asyncio.sleep(max(self.first_delay - call * self.step, 0.0))
        self.completed.append(call)
        return await self.inner._lookup(lat, lon)


class TestChunking:
    """Tests for concurrency groups and write ordering"""

    @pytest.mark.parametrize("count,chunk_size,groups", [(12, 5, [5, 5, 2]), (5, 5, [5]), (3, 1, [1, 1, 1])])
    async def test_concurrency_groups(self, count, chunk_size, groups, row_factory):
        resolver = ChunkTrackingResolver()
        engine = BatchImportEngine(InMemoryOrderStore(), resolver, chunk_size=chunk_size)
        await engine.run([row_factory(order_id=i) for i in range(1, count + 1)])

        assert resolver.groups == groups

    async def test_writes_are_sequential_in_row_order(self, slow_resolver, row_factory):
        store = RecordingStore()
        rows = [row_factory(order_id=i) for i in (7, 3, 9, 1, 4, 8, 2)]
        await BatchImportEngine(store, slow_resolver, chunk_size=3).run(rows)

        assert store.writes == [7, 3, 9, 1, 4, 8, 2]
        assert not store.overlapped

    async def test_write_order_ignores_resolution_latency(self, row_factory):
        """Test later rows that resolve first are still written after earlier ones"""
        resolver = ShrinkingDelayResolver()
        store = RecordingStore()
        rows = [row_factory(order_id=i) for i in (7, 3, 9, 1, 4, 8, 2)]
        await BatchImportEngine(store, resolver, chunk_size=4).run(rows)

        # Within each chunk lookups finish in reverse of source order
        assert resolver.completed == [3, 2, 1, 0, 6, 5, 4]
        assert store.writes == [7, 3, 9, 1, 4, 8, 2]
        assert not store.overlapped
