from __future__ import annotations

from typing import Any, Dict, List

from backtest_console.services.admin import AdminService
from backtest_console.services.backtests import BacktestService
from backtest_console.services.strategies import StrategyService
from backtest_console.services.user_settings import UserSettingsService


class RecordingClient:
    def __init__(self) -> None:
        self.calls: List[Dict[str, Any]] = []
        self.token = None

    def request(self, method, path, **kwargs):
        self.calls.append({"method": method, "path": path, **kwargs})
        return {}


def test_backtest_routes():
    client = RecordingClient()
    service = BacktestService(client)

    service.submit({"name": "s"})
    service.submit_dual({"buy_strategy": {}})
    service.status("j1")
    service.status("j1", start=10, end=20)
    service.download("j1")
    service.default_strategy()
    service.buy_strategy()
    service.sell_strategy()
    service.both_strategies()
    service.dual_template()

    assert [(c["method"], c["path"]) for c in client.calls] == [
        ("POST", "/backtest/test"),
        ("POST", "/backtest/test/dual"),
        ("GET", "/backtest/j1"),
        ("GET", "/backtest/j1"),
        ("GET", "/backtest/j1/download"),
        ("GET", "/backtest/default-strategy"),
        ("GET", "/backtest/strategy/buy"),
        ("GET", "/backtest/strategy/sell"),
        ("GET", "/backtest/strategy/both"),
        ("GET", "/backtest/strategy/dual"),
    ]
    assert client.calls[2]["params"] is None
    assert client.calls[3]["params"] == {"start": "10", "end": "20"}
    assert client.calls[4]["raw"] is True


def test_strategy_routes():
    client = RecordingClient()
    service = StrategyService(client)

    service.list_strategies()
    service.get(4)
    service.update(4, "Renamed", {"tf": "4h"}, "notes")
    service.delete(4)
    service.save_backtest_to_strategy("job-1", 4)

    assert [(c["method"], c["path"]) for c in client.calls] == [
        ("GET", "/strategy/"),
        ("GET", "/strategy/4"),
        ("PUT", "/strategy/4"),
        ("DELETE", "/strategy/4"),
        ("POST", "/backtest/job-1/save-to-strategy"),
    ]
    assert client.calls[2]["json"]["description"] == "notes"
    assert client.calls[4]["json"] == {"strategy_id": 4}


def test_admin_routes():
    client = RecordingClient()
    service = AdminService(client)

    service.list_users()
    service.create_user({"username": "u", "password": "p"})
    service.update_user(2, {"activated": False})
    service.delete_user(2)
    service.list_symbols()
    service.update_symbol(5, {"enabled": False})
    service.delete_symbol(5)
    service.start_sync()
    service.sync_status()

    assert [(c["method"], c["path"]) for c in client.calls] == [
        ("GET", "/admin/users"),
        ("POST", "/admin/users"),
        ("PUT", "/admin/users/2"),
        ("DELETE", "/admin/users/2"),
        ("GET", "/admin/parsed-symbols"),
        ("PUT", "/admin/parsed-symbols/5"),
        ("DELETE", "/admin/parsed-symbols/5"),
        ("POST", "/parse/sync/start"),
        ("GET", "/parse/sync/status"),
    ]


def test_user_settings_routes():
    client = RecordingClient()
    service = UserSettingsService(client)

    service.save_api_keys("binance", "key", "secret")
    service.get_api_keys("binance")
    service.update_api_keys("binance", "key2", "secret2")
    service.delete_api_keys("binance")
    service.save_telegram("bot", "42")
    service.get_telegram()
    service.delete_telegram()

    assert [(c["method"], c["path"]) for c in client.calls] == [
        ("POST", "/auth/api-keys"),
        ("GET", "/auth/api-keys/binance"),
        ("PUT", "/auth/api-keys/binance"),
        ("DELETE", "/auth/api-keys/binance"),
        ("POST", "/auth/telegram-settings"),
        ("GET", "/auth/telegram-settings"),
        ("DELETE", "/auth/telegram-settings"),
    ]
    assert client.calls[0]["json"] == {"exchange": "binance", "api_key": "key", "api_secret": "secret"}
    assert client.calls[4]["json"] == {"token": "bot", "chat_id": "42"}
