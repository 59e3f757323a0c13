from __future__ import annotations

from typing import Sequence

import streamlit as st


def render_terminal(lines: Sequence[str], *, height: int = 220) -> None:
    """Session action log, newest line last."""
    body = "\n".join(lines) if lines else "> waiting for commands..."
    with st.container(height=height):
        st.code(body, language="text")
