from __future__ import annotations

import pytest

from backtest_console.core.listing import build_rows, filter_rows, query_rows, sort_rows
from backtest_console.core.results import CompletedBacktest


def _completed(job_id, name, created_at, **analytics):
    return CompletedBacktest(
        id=job_id,
        strategy_type="single",
        strategy={"name": name},
        analytics=analytics,
        created_at=created_at,
    )


@pytest.fixture
def rows():
    completed = [
        _completed("job-1", "Alpha Breakout", "2025-01-03T10:00:00+00:00", total_pnl=5.0, winrate=0.4),
        _completed("job-2", "Beta Revert", "2025-01-01T10:00:00+00:00", total_pnl=-2.0, winrate=0.7),
    ]
    saved = [
        {
            "id": 11,
            "name": "alpha saved",
            "created_at": "2025-01-02T10:00:00Z",
            "metrics": {"total_pnl": 1.0, "sharpe_ratio": 2.5},
        },
        {"id": 12, "name": "Gamma", "created_at": "2024-12-31T10:00:00Z", "metrics": None},
    ]
    return build_rows(completed, saved)


def test_saved_rows_are_flagged_and_missing_metrics_are_zero(rows):
    gamma = next(row for row in rows if row.name == "Gamma")

    assert gamma.is_saved
    assert gamma.id == "12"
    assert gamma.metric("total_pnl") == 0
    assert gamma.metric("winrate") == 0


def test_search_is_case_insensitive(rows):
    names = [row.name for row in filter_rows(rows, search="ALPHA")]

    assert names == ["Alpha Breakout", "alpha saved"]


def test_profit_filters(rows):
    profitable = {row.name for row in filter_rows(rows, profit="profitable")}
    unprofitable = {row.name for row in filter_rows(rows, profit="unprofitable")}

    assert profitable == {"Alpha Breakout", "alpha saved"}
    assert unprofitable == {"Beta Revert", "Gamma"}


def test_default_sort_is_newest_first(rows):
    assert [row.id for row in sort_rows(rows)] == ["job-1", "11", "job-2", "12"]


@pytest.mark.parametrize(
    "sort_by, expected",
    [
        ("winrate", "job-2"),
        ("sharpe", "11"),
        ("pnl", "job-1"),
    ],
)
def test_metric_sorts_are_descending(rows, sort_by, expected):
    assert sort_rows(rows, sort_by)[0].id == expected


def test_query_combines_filter_and_sort(rows):
    result = query_rows(rows, search="a", profit="profitable", sort_by="pnl")

    assert [row.id for row in result] == ["job-1", "11"]


def test_unknown_options_are_rejected(rows):
    with pytest.raises(ValueError):
        sort_rows(rows, "volume")
    with pytest.raises(ValueError):
        filter_rows(rows, profit="maybe")


def test_saved_rows_detect_dual_configs():
    rows = build_rows([], [{"id": 1, "name": "d", "config": {"dual_strategy": {"buy_strategy": {}}}}])

    assert rows[0].strategy_type == "dual"
