"""Streamlit rendering of a windowed, sortable bar table."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Sequence

import pandas as pd
import streamlit as st

from backtest_console.core.bars_table import (
    SortState,
    header_label,
    headers_for,
    scroll_top_for_row,
    sort_records,
    visible_window,
    window_rows,
)
from backtest_console.state.session import SessionState


def _render_sort_headers(
    state: SessionState, key: str, columns: Sequence[str], sort: SortState
) -> None:
    cells = st.columns(len(columns))
    for cell, column in zip(cells, columns):
        label = header_label(column)
        if sort.key == column:
            label = f"{label} {sort.indicator}"
        with cell:
            if st.button(label, key=f"bars-sort-{key}-{column}", use_container_width=True):
                state.bar_sorts[key] = sort.toggle(column)
                state.bar_offsets[key] = 0
                st.session_state.pop(f"bars-offset-{key}", None)
                st.rerun()


def render_bars_table(
    state: SessionState,
    key: str,
    records: Sequence[Mapping[str, Any]],
    *,
    row_height: int,
    viewport_px: int,
) -> None:
    if not records:
        st.info("No bars returned")
        return

    columns = headers_for(records)
    sort = state.bar_sorts.get(key, SortState())
    _render_sort_headers(state, key, columns, sort)
    ordered = sort_records(records, sort)

    total = len(ordered)
    visible_rows = max(1, viewport_px // row_height)
    max_offset = max(0, total - visible_rows)
    offset = min(state.bar_offsets.get(key, 0), max_offset)
    if max_offset:
        offset = st.slider(
            "First row", 0, max_offset, offset, key=f"bars-offset-{key}"
        )
    state.bar_offsets[key] = offset

    window = visible_window(
        total, scroll_top_for_row(offset, row_height), viewport_px, row_height
    )
    rows: List[Dict[str, str]] = window_rows(ordered, window, columns)
    frame = pd.DataFrame(rows, columns=columns)
    frame.index = range(window.start + 1, window.end + 1)
    frame.columns = [header_label(column) for column in columns]
    st.dataframe(frame, height=viewport_px, use_container_width=True)
    st.caption(f"Rows {window.start + 1}-{window.end} of {total}")
