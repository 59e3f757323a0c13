from __future__ import annotations

import os

import pytest

from backtest_console.logging_utils import set_request_id, setup_logging
from backtest_console.settings.config import AppSettings

os.environ.setdefault("ENV", "test")


@pytest.fixture(scope="session", autouse=True)
def configure_logging():
    setup_logging(force=True, level="DEBUG", environment="test")
    yield


@pytest.fixture(autouse=True)
def _reset_request_id():
    set_request_id("-")
    yield


def make_settings(**overrides) -> AppSettings:
    values = dict(
        api_base_url="http://api.test",
        use_mock_api=False,
        api_timeout_secs=5.0,
        poll_interval_secs=2.0,
        too_frequent_delay_secs=10.0,
        poll_error_delay_secs=5.0,
        max_poll_attempts=150,
        sync_refresh_secs=5.0,
        bars_row_height_px=32,
        bars_viewport_px=640,
        service_name="backtest-console",
        environment="test",
        app_version="0.0.0-test",
        log_level="DEBUG",
        otel_endpoint=None,
        otel_protocol=None,
        otel_resource_attributes=None,
        otel_headers=None,
    )
    values.update(overrides)
    return AppSettings(**values)


@pytest.fixture
def settings() -> AppSettings:
    return make_settings()


@pytest.fixture
def settings_factory():
    return make_settings
