from __future__ import annotations

import time
from typing import Any, Dict, List

import streamlit as st

from backtest_console.components.error_banner import render_error
from backtest_console.components.kpi import format_kpi
from backtest_console.components.results_view import render_results
from backtest_console.components.toast import success as toast_success
from backtest_console.core.listing import PROFIT_FILTERS, SORT_KEYS, DashboardRow, build_rows, query_rows
from backtest_console.core.results import CompletedBacktest
from backtest_console.services.http_client import ServiceError
from backtest_console.state.session import get_services, get_session_state, get_settings
from backtest_console.utils.telemetry import ui_action_span

SORT_LABELS = {
    "date": "Newest first",
    "winrate": "Win rate",
    "sharpe": "Sharpe ratio",
    "pnl": "PnL",
}


def _load_saved() -> List[Dict[str, Any]]:
    services = get_services()
    try:
        return services.strategies.list_strategies() or []
    except ServiceError as err:
        st.warning("Saved strategies unavailable. See details below.")
        render_error(err)
        return []


def _delete_saved(row: DashboardRow) -> None:
    services = get_services()
    state = get_session_state()
    state.new_request_id()
    with ui_action_span("dashboard.delete", strategy_id=row.id):
        try:
            services.strategies.delete(row.id)
        except ServiceError as err:
            state.record_action("strategy.delete", "error", time.time())
            render_error(err)
            return
    state.record_action("strategy.delete", "ok", time.time())
    toast_success(f"Deleted {row.name}")
    st.rerun()


def _details_for(row: DashboardRow, saved: List[Dict[str, Any]]) -> CompletedBacktest | None:
    state = get_session_state()
    if row.is_saved:
        for item in saved:
            if str(item.get("id")) == row.id:
                return CompletedBacktest.from_saved(item)
        return None
    for backtest in state.history:
        if backtest.id == row.id:
            return backtest
    return None


def _render_row(row: DashboardRow, saved: List[Dict[str, Any]]) -> None:
    with st.container(border=True):
        head, pnl, winrate, sharpe, actions = st.columns([3, 1, 1, 1, 2])
        source = "saved" if row.is_saved else row.strategy_type
        head.markdown(f"**{row.name or 'Unnamed'}**")
        head.caption(f"{source} · {row.created_at[:19].replace('T', ' ')}")
        pnl.metric("PnL", format_kpi("total_pnl", row.metric("total_pnl")))
        winrate.metric("Win rate", format_kpi("winrate", row.metric("winrate")))
        sharpe.metric("Sharpe", format_kpi("sharpe_ratio", row.metric("sharpe_ratio")))
        show = actions.toggle("Details", key=f"details-{row.is_saved}-{row.id}")
        if row.is_saved and actions.button("Delete", key=f"delete-{row.id}"):
            _delete_saved(row)
        if show:
            backtest = _details_for(row, saved)
            if backtest is None:
                st.info("Details are no longer available.")
            else:
                render_results(get_session_state(), backtest, get_settings())


def render() -> None:
    st.title("Backtests")
    state = get_session_state()
    with ui_action_span("dashboard.load"):
        saved = _load_saved()
    rows = build_rows(state.history, saved)

    search_col, filter_col, sort_col = st.columns([2, 2, 1])
    search = search_col.text_input("Search by strategy name", key="dashboard-search")
    profit = filter_col.radio(
        "Show",
        PROFIT_FILTERS,
        horizontal=True,
        format_func=str.capitalize,
        key="dashboard-profit",
    )
    sort_by = sort_col.selectbox(
        "Sort by", list(SORT_KEYS), format_func=SORT_LABELS.get, key="dashboard-sort"
    )

    visible = query_rows(rows, search=search, profit=profit, sort_by=sort_by)
    st.caption(f"Showing {len(visible)} of {len(rows)} backtests")
    if not rows:
        st.info("No backtests yet. Run one from the Backtest page.")
        return
    if not visible:
        st.info("No backtests match your filters. Try adjusting your search criteria.")
        return
    for row in visible:
        _render_row(row, saved)
