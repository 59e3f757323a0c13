from __future__ import annotations

import pytest

from backtest_console.core.polling import BacktestPoller
from backtest_console.services.http_client import ServiceError
from backtest_console.services.mock import (
    MOCK_FINISH_AFTER_POLLS,
    MockAdminService,
    MockAuthService,
    MockBacktestService,
    MockStrategyService,
    MockUserSettingsService,
)
from backtest_console.services.registry import build_services


def test_mock_job_finishes_on_third_status_request():
    service = MockBacktestService()
    job_id = service.submit({"name": "x"})["job_id"]

    statuses = [service.status(job_id, full=True)["status"] for _ in range(MOCK_FINISH_AFTER_POLLS)]

    assert statuses == ["pending", "pending", "finished"]


def test_mock_dual_job_returns_side_bars():
    service = MockBacktestService()

    payload = BacktestPoller(service, sleep=lambda _s: None).run(service.dual_template())

    assert payload["strategy_type"] == "dual"
    assert payload["bars_buy"] and payload["bars_sell"]


def test_unknown_mock_job_is_not_found():
    with pytest.raises(ServiceError) as excinfo:
        MockBacktestService().status("missing")

    assert excinfo.value.category == "not_found"


def test_mock_login_grants_admin_only_to_admin_user():
    auth = MockAuthService()

    auth.login("admin", "pw")
    assert auth.current_user().is_admin

    auth.login("trader", "pw")
    assert not auth.current_user().is_admin

    with pytest.raises(ServiceError):
        auth.login("", "pw")


def test_mock_strategy_lifecycle():
    strategies = MockStrategyService()

    created = strategies.create("Saved", {"tf": "1h"}, "desc")
    strategies.save_results(created["id"], {"total_pnl": 2.0})

    item = strategies.get(created["id"])
    assert item["metrics"] == {"total_pnl": 2.0}
    assert [s["name"] for s in strategies.list_strategies()] == ["Saved"]

    strategies.delete(created["id"])
    with pytest.raises(ServiceError):
        strategies.get(created["id"])


def test_mock_admin_and_settings_round_trip():
    admin = MockAdminService()
    user = admin.create_user({"username": "new", "password": "pw", "activated": True})
    admin.update_user(user["id"], {"activated": False})
    assert admin.get_user(user["id"])["activated"] is False

    admin.start_sync()
    assert admin.sync_status()["running"] is True

    settings = MockUserSettingsService()
    settings.save_api_keys("binance", "abcdef", "secret")
    assert settings.get_api_keys("binance")["api_key"] == "abcd****"
    settings.delete_api_keys("binance")
    with pytest.raises(ServiceError):
        settings.get_api_keys("binance")


def test_registry_uses_mocks_when_enabled(settings_factory):
    services = build_services(settings_factory(use_mock_api=True))

    assert services.client is None
    assert isinstance(services.backtests, MockBacktestService)


def test_registry_builds_http_services(settings_factory):
    services = build_services(settings_factory())

    assert services.client is not None
    assert services.auth.client is services.client
    assert services.strategies.client is services.client
