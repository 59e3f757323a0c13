from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Tuple

from backtest_console.core.polling import is_dual_strategy

HEADLINE_METRICS = (
    "n_trades",
    "n_wins",
    "n_losses",
    "winrate",
    "total_pnl",
    "sharpe_ratio",
    "max_drawdown",
    "profit_factor",
)
HIDDEN_METRICS = {"trades", "trade_type_analysis"}

BAR_TAB_LABELS = {
    "bars": "Bars",
    "bars_buy": "BUY bars",
    "bars_sell": "SELL bars",
}


@dataclass
class CompletedBacktest:
    id: str
    strategy_type: str
    strategy: Dict[str, Any]
    analytics: Dict[str, Any]
    bars: List[Dict[str, Any]] = field(default_factory=list)
    bars_buy: Optional[List[Dict[str, Any]]] = None
    bars_sell: Optional[List[Dict[str, Any]]] = None
    is_saved: bool = False
    created_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    description: Optional[str] = None

    @classmethod
    def from_saved(cls, item: Mapping[str, Any]) -> "CompletedBacktest":
        """Saved strategies carry their metrics instead of a full analytics payload."""
        config = item.get("config") if isinstance(item.get("config"), dict) else {}
        strategy = dict(config)
        if item.get("name"):
            strategy.setdefault("name", item["name"])
        return cls(
            id=str(item.get("id")),
            strategy_type="dual" if is_dual_strategy(config) else "single",
            strategy=strategy,
            analytics=dict(item.get("metrics") or {}),
            is_saved=True,
            created_at=str(item.get("created_at") or ""),
            description=item.get("description"),
        )

    @classmethod
    def from_finished(
        cls, job_id: str, payload: Mapping[str, Any], strategy: Dict[str, Any]
    ) -> "CompletedBacktest":
        strategy_type = payload.get("strategy_type") or (
            "dual" if is_dual_strategy(strategy) else "single"
        )
        return cls(
            id=str(job_id),
            strategy_type=str(strategy_type),
            strategy=dict(strategy),
            analytics=dict(payload.get("analytics") or {}),
            bars=list(payload.get("bars") or []),
            bars_buy=payload.get("bars_buy"),
            bars_sell=payload.get("bars_sell"),
        )

    @property
    def name(self) -> str:
        name = self.strategy.get("name")
        return name if isinstance(name, str) and name else "Strategy"

    def metric(self, key: str) -> float:
        value = self.analytics.get(key)
        return value if isinstance(value, (int, float)) and not isinstance(value, bool) else 0

    @property
    def headline(self) -> Dict[str, float]:
        return {key: self.metric(key) for key in HEADLINE_METRICS}

    def dataset(self, tab: str) -> List[Dict[str, Any]]:
        data = getattr(self, tab, None) if tab in BAR_TAB_LABELS else None
        return list(data or [])

    def tabs(self) -> List[str]:
        if self.is_saved:
            return ["metrics", "code"]
        if self.strategy_type == "dual":
            return ["metrics", "bars", "bars_buy", "bars_sell", "code"]
        return ["metrics", "bars", "code"]


def metric_label(key: str) -> str:
    return key.replace("_", " ")


def format_metric(value: Any) -> str:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return f"{value:.4f}"
    return str(value)


def metric_items(analytics: Optional[Mapping[str, Any]]) -> List[Tuple[str, str]]:
    if not analytics:
        return []
    return [
        (metric_label(key), format_metric(value))
        for key, value in analytics.items()
        if key not in HIDDEN_METRICS
    ]
