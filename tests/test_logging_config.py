"""Tests for the JSON log setup"""

import io
import json
import logging

import pytest

from vehicle_affordability.core.engine import run_engine
from vehicle_affordability.logging_config import SERVICE_NAME, setup_logging


@pytest.fixture
def log_stream():
    stream = io.StringIO()
    yield stream
    logger = logging.getLogger("vehicle_affordability")
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


def test_records_are_json_with_service_metadata(log_stream):
    setup_logging("INFO", stream=log_stream)

    logging.getLogger("vehicle_affordability.core.engine").info("hello", extra={"scenario_count": 6})

    record = json.loads(log_stream.getvalue().strip())
    assert record["message"] == "hello"
    assert record["level"] == "INFO"
    assert record["service"] == SERVICE_NAME
    assert record["name"] == "vehicle_affordability.core.engine"
    assert record["scenario_count"] == 6
    assert "timestamp" in record


def test_debug_engine_run_is_logged_when_enabled(log_stream, sedan_inputs, fixed_clock):
    setup_logging("debug", stream=log_stream)

    run_engine(sedan_inputs, clock=fixed_clock)

    lines = [json.loads(line) for line in log_stream.getvalue().splitlines()]
    summary = [line for line in lines if line["message"] == "Engine run complete"]
    assert summary[0]["overall_score"] == 71
    assert summary[0]["issue_count"] == 0


def test_engine_is_quiet_at_info(log_stream, sedan_inputs, fixed_clock):
    setup_logging("INFO", stream=log_stream)

    run_engine(sedan_inputs, clock=fixed_clock)

    assert log_stream.getvalue() == ""


def test_setup_is_idempotent(log_stream):
    setup_logging(stream=log_stream)
    setup_logging(stream=log_stream)

    assert len(logging.getLogger("vehicle_affordability").handlers) == 1
