from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from loguru import logger

from backtest_console.services import mock
from backtest_console.services.admin import AdminService
from backtest_console.services.auth import AuthService
from backtest_console.services.backtests import BacktestService
from backtest_console.services.http_client import HttpClient
from backtest_console.services.strategies import StrategyService
from backtest_console.services.user_settings import UserSettingsService
from backtest_console.settings.config import AppSettings


@dataclass
class ServicesRegistry:
    client: Optional[HttpClient]
    auth: Any
    backtests: Any
    strategies: Any
    admin: Any
    user_settings: Any


def build_services(settings: AppSettings) -> ServicesRegistry:
    if settings.use_mock_api:
        logger.warning("USE_MOCK_API enabled; backend calls are served in-process")
        return ServicesRegistry(
            client=None,
            auth=mock.MockAuthService(),
            backtests=mock.MockBacktestService(),
            strategies=mock.MockStrategyService(),
            admin=mock.MockAdminService(),
            user_settings=mock.MockUserSettingsService(),
        )

    client = HttpClient(settings)
    return ServicesRegistry(
        client=client,
        auth=AuthService(client),
        backtests=BacktestService(client),
        strategies=StrategyService(client),
        admin=AdminService(client),
        user_settings=UserSettingsService(client),
    )
