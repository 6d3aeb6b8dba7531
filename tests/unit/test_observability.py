"""
Unit tests for structured logging and metrics.
"""

import asyncio
import json
import logging
import sys

import pytest

from taxflow.observability.logger import get_logger, log_context, log_operation, setup_logger
from taxflow.observability.metrics import REGISTRY, MetricsCollector, generate_metrics


def sample(name, **labels) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


class _CurrentStderr:
    """Forward to whatever sys.stderr is now; capsys swaps it between setup and call"""

    def write(self, text):
        return sys.stderr.write(text)

    def flush(self):
        sys.stderr.flush()


@pytest.fixture
def json_log_lines(capsys):
    """Route package logs to the captured stderr as JSON, restore afterwards"""
    setup_logger(level="DEBUG", format_type="json")
    logging.getLogger("taxflow").handlers[0].setStream(_CurrentStderr())

    def read():
        return [json.loads(line) for line in capsys.readouterr().err.splitlines() if line.strip()]

    yield read
    logging.getLogger("taxflow").handlers[0].setStream(sys.__stderr__)


class TestLogger:
    """Tests for the JSON logger"""

    def test_json_fields(self, json_log_lines):
        get_logger("taxflow.tests").warning("fallback used", extra={"reason": "no_county"})
        record = json_log_lines()[-1]

        assert record["message"] == "fallback used"
        assert record["level"] == "WARNING"
        assert record["logger"] == "taxflow.tests"
        assert record["reason"] == "no_county"
        assert "timestamp" in record

    def test_foreign_names_are_namespaced(self):
        assert get_logger("scripts.loader").name == "taxflow.scripts.loader"
        assert get_logger("taxflow.batch.engine").name == "taxflow.batch.engine"

    def test_log_operation(self, json_log_lines):
        with log_operation("Import rows", logger=get_logger("taxflow.tests"), rows=3):
            pass
        records = json_log_lines()

        assert records[-2]["message"] == "Starting: Import rows"
        assert records[-1]["status"] == "success"
        assert records[-1]["rows"] == 3

    def test_log_operation_reraises(self, json_log_lines):
        with pytest.raises(KeyError):
            with log_operation("Broken", logger=get_logger("taxflow.tests")):
                raise KeyError("x")
        assert json_log_lines()[-1]["error_type"] == "KeyError"

    def test_log_context_fields(self, json_log_lines):
        logger = get_logger("taxflow.tests")
        with log_context(session_id="1700000000000-ab12", order_id=None):
            with log_context(order_id="7"):
                logger.warning("fallback used")
            logger.info("chunk done")
        logger.info("outside")
        records = json_log_lines()

        assert records[-3]["session_id"] == "1700000000000-ab12"
        assert records[-3]["order_id"] == "7"
        assert records[-2]["session_id"] == "1700000000000-ab12"
        assert "order_id" not in records[-2]
        assert "session_id" not in records[-1]

    def test_explicit_extra_wins_over_context(self, json_log_lines):
        with log_context(order_id="1"):
            get_logger("taxflow.tests").info("write failed", extra={"order_id": "2"})
        assert json_log_lines()[-1]["order_id"] == "2"

    async def test_log_context_is_per_task(self, json_log_lines):
        """Test concurrent rows each log their own order_id"""
        logger = get_logger("taxflow.tests")

        async def resolve(order_id, delay):
            with log_context(order_id=order_id):
                await asyncio.sleep(delay)
                logger.info(f"resolved {order_id}")

        await asyncio.gather(resolve("1", 0.02), resolve("2", 0.0))
        records = {r["message"]: r for r in json_log_lines()}

        assert records["resolved 1"]["order_id"] == "1"
        assert records["resolved 2"]["order_id"] == "2"


class TestMetricsCollector:
    """Tests for MetricsCollector"""

    def test_record_rows(self):
        metrics = MetricsCollector()
        before_ok = sample("taxflow_rows_processed_total", mode="sync", status="success")
        before_code = sample("taxflow_row_failures_total", code="out_of_region")

        metrics.record_row("sync", success=True)
        metrics.record_row("sync", success=False, code="out_of_region")

        assert sample("taxflow_rows_processed_total", mode="sync", status="success") == before_ok + 1
        assert sample("taxflow_row_failures_total", code="out_of_region") == before_code + 1

    def test_session_lifecycle(self):
        metrics = MetricsCollector()
        before_active = sample("taxflow_import_sessions_active")
        before_rolled = sample("taxflow_rows_rolled_back_total")

        metrics.session_started()
        assert sample("taxflow_import_sessions_active") == before_active + 1

        metrics.session_finished("cancelled", rolled_back=4)
        assert sample("taxflow_import_sessions_active") == before_active
        assert sample("taxflow_rows_rolled_back_total") == before_rolled + 4

    def test_exposition(self):
        MetricsCollector().record_fallback("geocoder_unavailable")
        text = generate_metrics().decode()
        assert 'taxflow_resolution_fallbacks_total{reason="geocoder_unavailable"}' in text
