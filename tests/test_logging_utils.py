from __future__ import annotations

import logging
from contextlib import contextmanager

import pytest
from loguru import logger

from backtest_console.logging_utils import set_request_id, setup_logging


@pytest.fixture(autouse=True)
def _reset_logging():
    setup_logging(force=True, level="INFO", environment="test")
    yield
    setup_logging(force=True, level="INFO", environment="test")


@contextmanager
def capture_records(level=logging.INFO):
    records = []

    class ListHandler(logging.Handler):
        def emit(self, record):
            records.append(record)

    handler = ListHandler()
    handler.setLevel(level)
    root = logging.getLogger()
    prev_level = root.level
    root.setLevel(level)
    root.addHandler(handler)
    try:
        yield records
    finally:
        root.removeHandler(handler)
        root.setLevel(prev_level)


def test_setup_logging_attaches_metadata():
    setup_logging(force=True, level="INFO", environment="staging", service_version="9.9.9")

    with capture_records() as records:
        logger.info("hello world")

    record = records[-1]
    assert record.getMessage() == "hello world"
    assert record.environment == "staging"
    assert record.service_version == "9.9.9"
    assert record.request_id == "-"


def test_request_id_context_is_injected():
    set_request_id("ui-0123456789abcdef")

    with capture_records() as records:
        logger.info("with request id")

    assert records[-1].request_id == "ui-0123456789abcdef"


def test_contextualize_wins_over_context_var():
    set_request_id("ui-outer")

    with capture_records() as records:
        with logger.contextualize(request_id="req-1"):
            logger.info("scoped")

    assert records[-1].request_id == "req-1"


def test_repeated_setup_is_ignored_without_force():
    setup_logging(force=True, level="INFO", environment="first")
    setup_logging(environment="second")

    with capture_records() as records:
        logger.info("check")

    assert records[-1].environment == "first"
