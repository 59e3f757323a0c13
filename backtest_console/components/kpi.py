from __future__ import annotations

from typing import Mapping, Sequence, Tuple

import streamlit as st

KPI_LABELS = {
    "n_trades": "Trades",
    "winrate": "Win rate",
    "total_pnl": "Total PnL",
    "sharpe_ratio": "Sharpe",
    "max_drawdown": "Max drawdown",
    "profit_factor": "Profit factor",
}


def format_kpi(key: str, value: float) -> str:
    if key == "winrate":
        return f"{value * 100:.1f}%"
    if key == "n_trades":
        return str(int(value))
    return f"{value:.2f}"


def render_kpi(label: str, value: str, delta: str | None = None) -> None:
    st.metric(label, value, delta)


def render_kpi_row(metrics: Mapping[str, float]) -> None:
    columns = st.columns(len(KPI_LABELS))
    for column, (key, label) in zip(columns, KPI_LABELS.items()):
        with column:
            render_kpi(label, format_kpi(key, metrics.get(key) or 0))


def render_metric_grid(items: Sequence[Tuple[str, str]], *, per_row: int = 4) -> None:
    if not items:
        st.info("No analytics available")
        return
    for offset in range(0, len(items), per_row):
        columns = st.columns(per_row)
        for column, (label, value) in zip(columns, items[offset : offset + per_row]):
            with column:
                st.caption(label)
                st.markdown(f"**{value}**")
