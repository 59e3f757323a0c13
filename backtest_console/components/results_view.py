from __future__ import annotations

import streamlit as st

from backtest_console.components.bars_table import render_bars_table
from backtest_console.components.kpi import render_kpi_row, render_metric_grid
from backtest_console.core.exports import archive_name, download_archive, strategy_file_name
from backtest_console.core.results import BAR_TAB_LABELS, CompletedBacktest, metric_items
from backtest_console.core.strategy_files import format_strategy
from backtest_console.settings.config import AppSettings
from backtest_console.state.session import SessionState, get_services
from backtest_console.utils.telemetry import ui_action_span

TAB_LABELS = {"metrics": "Metrics", "code": "Code", **BAR_TAB_LABELS}


def _widget_key(prefix: str, backtest: CompletedBacktest) -> str:
    source = "saved" if backtest.is_saved else "run"
    return f"{prefix}-{source}-{backtest.id}"


def render_download(state: SessionState, backtest: CompletedBacktest) -> None:
    """Two-step download: fetch the archive on request, then offer the bytes."""
    cached = backtest.id in state.download_cache
    if not (cached or st.button("Prepare results ZIP", key=_widget_key("prepare", backtest))):
        return
    loader = get_services().backtests.download
    if cached:
        payload = download_archive(backtest, state.download_cache, loader)
    else:
        if not backtest.is_saved:
            state.add_terminal_line("> 📥 Downloading results from server...")
        with ui_action_span("backtest.download", job_id=backtest.id, saved=backtest.is_saved):
            payload = download_archive(backtest, state.download_cache, loader)
        if backtest.is_saved or backtest.id in state.download_cache:
            state.add_terminal_line("> ✅ Download completed")
        else:
            state.add_terminal_line("> ⚠️ Server ZIP unavailable, bundled results locally")
            st.warning("Server archive unavailable; the ZIP was built from the loaded results.")
    st.download_button(
        "Download results ZIP",
        data=payload,
        file_name=archive_name(backtest),
        mime="application/zip",
        key=_widget_key("download", backtest),
    )


def render_results(
    state: SessionState, backtest: CompletedBacktest, settings: AppSettings
) -> None:
    st.subheader(backtest.name)
    caption = f"{backtest.strategy_type} strategy"
    if backtest.is_saved:
        caption += " (saved)"
    st.caption(caption)
    render_kpi_row(backtest.headline)

    tab_keys = backtest.tabs()
    tabs = st.tabs([TAB_LABELS[key] for key in tab_keys])
    for tab_key, tab in zip(tab_keys, tabs):
        with tab:
            if tab_key == "metrics":
                render_metric_grid(metric_items(backtest.analytics))
            elif tab_key == "code":
                code = format_strategy(backtest.strategy)
                st.code(code, language="json")
                st.download_button(
                    "Download strategy JSON",
                    data=code,
                    file_name=strategy_file_name(backtest.name),
                    mime="application/json",
                    key=_widget_key("strategy-json", backtest),
                )
            else:
                render_bars_table(
                    state,
                    f"{backtest.id}-{tab_key}",
                    backtest.dataset(tab_key),
                    row_height=settings.bars_row_height_px,
                    viewport_px=settings.bars_viewport_px,
                )
    render_download(state, backtest)
