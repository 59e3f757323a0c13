from __future__ import annotations

from typing import Any, Dict, Optional

from backtest_console.services.api_routes import ROUTES
from backtest_console.services.http_client import HttpClient


class StrategyService:
    def __init__(self, client: HttpClient) -> None:
        self.client = client

    def list_strategies(self) -> Any:
        return self.client.request("GET", ROUTES.strategies, ui_action="strategies.list")

    def get(self, strategy_id: int | str) -> Any:
        path = ROUTES.strategy_item.format(strategy_id=strategy_id)
        return self.client.request("GET", path, ui_action="strategies.get")

    def create(
        self,
        name: str,
        config: Dict[str, Any],
        description: Optional[str] = None,
        *,
        request_id: str | None = None,
    ) -> Any:
        payload: Dict[str, Any] = {"name": name, "config": config}
        if description:
            payload["description"] = description
        return self.client.request(
            "POST",
            ROUTES.strategies,
            json=payload,
            ui_action="strategies.create",
            request_id=request_id,
        )

    def update(
        self,
        strategy_id: int | str,
        name: str,
        config: Dict[str, Any],
        description: Optional[str] = None,
    ) -> Any:
        payload: Dict[str, Any] = {"name": name, "config": config}
        if description:
            payload["description"] = description
        path = ROUTES.strategy_item.format(strategy_id=strategy_id)
        return self.client.request("PUT", path, json=payload, ui_action="strategies.update")

    def delete(self, strategy_id: int | str) -> Any:
        path = ROUTES.strategy_item.format(strategy_id=strategy_id)
        return self.client.request("DELETE", path, ui_action="strategies.delete")

    def save_results(self, strategy_id: int | str, analytics: Dict[str, Any]) -> Any:
        path = ROUTES.strategy_results.format(strategy_id=strategy_id)
        return self.client.request(
            "POST", path, json={"analytics": analytics}, ui_action="strategies.save_results"
        )

    def save_backtest_to_strategy(self, job_id: int | str, strategy_id: int | str) -> Any:
        path = ROUTES.backtest_save_to_strategy.format(job_id=job_id)
        return self.client.request(
            "POST",
            path,
            json={"strategy_id": strategy_id},
            ui_action="strategies.attach_backtest",
        )
