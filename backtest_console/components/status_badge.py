from __future__ import annotations

import streamlit as st

STATUS_COLORS = {
    "enqueuing": "#1d4ed8",
    "enqueued": "#1d4ed8",
    "pending": "#1d4ed8",
    "running": "#d97706",
    "polling": "#d97706",
    "too_frequent": "#a16207",
    "error": "#b91c1c",
    "finished": "#15803d",
    "failed": "#b91c1c",
}


def status_color(status: str) -> str:
    return STATUS_COLORS.get(status.lower(), "#4b5563")


def render_status_badge(status: str) -> None:
    st.markdown(
        f"<span style='padding:4px 8px;border-radius:8px;background:{status_color(status)};"
        f"color:white'>{status}</span>",
        unsafe_allow_html=True,
    )
