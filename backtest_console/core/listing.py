"""Dashboard rows: session backtests merged with saved strategies."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from backtest_console.core.polling import is_dual_strategy
from backtest_console.core.results import HEADLINE_METRICS, CompletedBacktest

PROFIT_FILTERS = ("all", "profitable", "unprofitable")
SORT_KEYS = {
    "date": "created_at",
    "winrate": "winrate",
    "sharpe": "sharpe_ratio",
    "pnl": "total_pnl",
}


@dataclass(frozen=True)
class DashboardRow:
    id: str
    name: str
    created_at: str
    metrics: Dict[str, float]
    is_saved: bool
    strategy_type: str = "single"
    description: Optional[str] = None

    def metric(self, key: str) -> float:
        return self.metrics.get(key) or 0

    @property
    def profitable(self) -> bool:
        return self.metric("total_pnl") > 0


def _number(value: Any) -> float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    return 0


def row_from_backtest(backtest: CompletedBacktest) -> DashboardRow:
    return DashboardRow(
        id=backtest.id,
        name=backtest.name,
        created_at=backtest.created_at,
        metrics=backtest.headline,
        is_saved=backtest.is_saved,
        strategy_type=backtest.strategy_type,
        description=backtest.description,
    )


def row_from_saved(item: Mapping[str, Any]) -> DashboardRow:
    metrics = item.get("metrics") if isinstance(item.get("metrics"), Mapping) else {}
    return DashboardRow(
        id=str(item.get("id")),
        name=str(item.get("name") or ""),
        created_at=str(item.get("created_at") or ""),
        metrics={key: _number(metrics.get(key)) for key in HEADLINE_METRICS},
        is_saved=True,
        strategy_type="dual" if is_dual_strategy(item.get("config")) else "single",
        description=item.get("description"),
    )


def build_rows(
    completed: Iterable[CompletedBacktest], saved: Iterable[Mapping[str, Any]]
) -> List[DashboardRow]:
    rows = [row_from_backtest(backtest) for backtest in completed]
    rows.extend(row_from_saved(item) for item in saved)
    return rows


def _timestamp(value: str) -> float:
    if not value:
        return 0.0
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return 0.0
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()


def filter_rows(
    rows: Sequence[DashboardRow], search: str = "", profit: str = "all"
) -> List[DashboardRow]:
    if profit not in PROFIT_FILTERS:
        raise ValueError(f"unknown profit filter: {profit}")
    needle = search.strip().lower()
    result = []
    for row in rows:
        if needle and needle not in row.name.lower():
            continue
        if profit == "profitable" and not row.profitable:
            continue
        if profit == "unprofitable" and row.profitable:
            continue
        result.append(row)
    return result


def sort_rows(rows: Sequence[DashboardRow], sort_by: str = "date") -> List[DashboardRow]:
    """Every ordering is descending; missing values count as 0."""
    if sort_by not in SORT_KEYS:
        raise ValueError(f"unknown sort key: {sort_by}")
    if sort_by == "date":
        return sorted(rows, key=lambda row: _timestamp(row.created_at), reverse=True)
    metric = SORT_KEYS[sort_by]
    return sorted(rows, key=lambda row: row.metric(metric), reverse=True)


def query_rows(
    rows: Sequence[DashboardRow],
    *,
    search: str = "",
    profit: str = "all",
    sort_by: str = "date",
) -> List[DashboardRow]:
    return sort_rows(filter_rows(rows, search, profit), sort_by)
