from __future__ import annotations

from typing import Any, Dict, Optional

from backtest_console.services.api_routes import ROUTES
from backtest_console.services.http_client import HttpClient


class BacktestService:
    def __init__(self, client: HttpClient) -> None:
        self.client = client

    def submit(self, strategy: Dict[str, Any], *, request_id: str | None = None) -> Any:
        return self.client.request(
            "POST",
            ROUTES.backtest_test,
            json=strategy,
            ui_action="backtest.submit",
            request_id=request_id,
        )

    def submit_dual(
        self, body: Dict[str, Any], *, request_id: str | None = None
    ) -> Any:
        return self.client.request(
            "POST",
            ROUTES.backtest_test_dual,
            json=body,
            ui_action="backtest.submit_dual",
            request_id=request_id,
        )

    def status(
        self,
        job_id: str,
        *,
        start: Optional[int] = None,
        end: Optional[int] = None,
        full: Optional[bool] = None,
    ) -> Any:
        params: Dict[str, str] = {}
        if start is not None:
            params["start"] = str(start)
        if end is not None:
            params["end"] = str(end)
        if full is not None:
            params["full"] = "true" if full else "false"
        path = ROUTES.backtest_result.format(job_id=job_id)
        return self.client.request(
            "GET", path, params=params or None, ui_action="backtest.status"
        )

    def download(self, job_id: str) -> bytes:
        path = ROUTES.backtest_download.format(job_id=job_id)
        return self.client.request("GET", path, ui_action="backtest.download", raw=True)

    def default_strategy(self) -> Any:
        return self.client.request(
            "GET", ROUTES.default_strategy, ui_action="backtest.template.default"
        )

    def buy_strategy(self) -> Any:
        return self.client.request(
            "GET", ROUTES.strategy_buy, ui_action="backtest.template.buy"
        )

    def sell_strategy(self) -> Any:
        return self.client.request(
            "GET", ROUTES.strategy_sell, ui_action="backtest.template.sell"
        )

    def both_strategies(self) -> Any:
        return self.client.request(
            "GET", ROUTES.strategy_both, ui_action="backtest.template.both"
        )

    def dual_template(self) -> Any:
        return self.client.request(
            "GET", ROUTES.strategy_dual, ui_action="backtest.template.dual"
        )
