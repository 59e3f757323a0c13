from __future__ import annotations

from backtest_console.core.results import CompletedBacktest, format_metric, metric_items


def _finished(**extra):
    payload = {
        "status": "finished",
        "analytics": {
            "n_trades": 10,
            "winrate": 0.6,
            "total_pnl": 4.5,
            "trades": [{"pnl": 1}],
            "trade_type_analysis": {"long": {}},
            "best_side": "long",
        },
        "bars": [{"close": 1.0}],
    }
    payload.update(extra)
    return payload


def test_completed_backtest_from_finished_single():
    backtest = CompletedBacktest.from_finished("job-1", _finished(), {"name": "Momentum"})

    assert backtest.id == "job-1"
    assert backtest.strategy_type == "single"
    assert backtest.name == "Momentum"
    assert backtest.headline["n_trades"] == 10
    assert backtest.headline["sharpe_ratio"] == 0
    assert backtest.tabs() == ["metrics", "bars", "code"]


def test_strategy_type_falls_back_to_dual_detection():
    strategy = {"buy_strategy": {"name": "b"}, "sell_strategy": {"name": "s"}}
    payload = _finished(bars_buy=[{"close": 1}], bars_sell=[])

    backtest = CompletedBacktest.from_finished("job-2", payload, strategy)

    assert backtest.strategy_type == "dual"
    assert backtest.tabs() == ["metrics", "bars", "bars_buy", "bars_sell", "code"]
    assert backtest.dataset("bars_buy") == [{"close": 1}]
    assert backtest.dataset("bars_sell") == []


def test_payload_strategy_type_wins_over_detection():
    backtest = CompletedBacktest.from_finished(
        "job-3", _finished(strategy_type="dual"), {"name": "plain"}
    )

    assert backtest.strategy_type == "dual"


def test_saved_strategy_shows_no_bar_tabs():
    item = {
        "id": 7,
        "name": "Saved one",
        "config": {"tf": "1h"},
        "metrics": {"total_pnl": 1.5},
        "created_at": "2025-01-02T00:00:00Z",
    }

    backtest = CompletedBacktest.from_saved(item)

    assert backtest.is_saved
    assert backtest.id == "7"
    assert backtest.name == "Saved one"
    assert backtest.tabs() == ["metrics", "code"]
    assert backtest.headline["total_pnl"] == 1.5


def test_metric_items_hide_trade_lists_and_format_numbers():
    items = dict(metric_items(_finished()["analytics"]))

    assert "trades" not in items
    assert "trade type analysis" not in items
    assert items["n trades"] == "10.0000"
    assert items["winrate"] == "0.6000"
    assert items["best side"] == "long"


def test_format_metric_handles_non_numbers():
    assert format_metric(None) == "None"
    assert format_metric(True) == "True"
    assert metric_items(None) == []


def test_saved_dual_config_keeps_its_strategy_type():
    item = {
        "id": 8,
        "name": "Both sides",
        "config": {"buy_strategy": {"tf": "1h"}, "sell_strategy": {"tf": "4h"}},
        "metrics": {},
    }

    backtest = CompletedBacktest.from_saved(item)

    assert backtest.strategy_type == "dual"
    assert backtest.tabs() == ["metrics", "code"]
