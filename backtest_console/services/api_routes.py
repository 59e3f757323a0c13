from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ApiRoutes:
    auth_login: str = "/auth/login"
    backtest_test: str = "/backtest/test"
    backtest_test_dual: str = "/backtest/test/dual"
    backtest_result: str = "/backtest/{job_id}"
    backtest_download: str = "/backtest/{job_id}/download"
    backtest_save_to_strategy: str = "/backtest/{job_id}/save-to-strategy"
    default_strategy: str = "/backtest/default-strategy"
    strategy_buy: str = "/backtest/strategy/buy"
    strategy_sell: str = "/backtest/strategy/sell"
    strategy_both: str = "/backtest/strategy/both"
    strategy_dual: str = "/backtest/strategy/dual"
    strategies: str = "/strategy/"
    strategy_item: str = "/strategy/{strategy_id}"
    strategy_results: str = "/strategy/{strategy_id}/results"
    admin_users: str = "/admin/users"
    admin_user: str = "/admin/users/{user_id}"
    admin_symbols: str = "/admin/parsed-symbols"
    admin_symbol: str = "/admin/parsed-symbols/{symbol_id}"
    sync_start: str = "/parse/sync/start"
    sync_status: str = "/parse/sync/status"
    api_keys: str = "/auth/api-keys"
    api_key: str = "/auth/api-keys/{exchange}"
    telegram: str = "/auth/telegram-settings"


ROUTES = ApiRoutes()
