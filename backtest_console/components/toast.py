from __future__ import annotations

import streamlit as st

def success(message: str) -> None:
    st.toast(message, icon="✅")

def warning(message: str) -> None:
    st.toast(message, icon="⚠️")
