from __future__ import annotations

import streamlit as st

from backtest_console.core.polling import BacktestFailed, PollingError, PollingTimeout
from backtest_console.services.http_client import ServiceError

ERROR_MESSAGES = {
    "user": "Check the form inputs and try again.",
    "auth": "Your session is not authorised. Sign in again.",
    "not_found": "Resource not found. Refresh the list or adjust filters.",
    "rate_limited": "Too many requests. Wait a moment before retrying.",
    "server": "Server issue detected. Retry shortly or check API health.",
    "network": "Network error. Check connectivity or retry.",
}


def error_hint(category: str) -> str:
    return ERROR_MESSAGES.get(category, "Unexpected error")


def render_error(error: ServiceError) -> None:
    st.error(f"{error_hint(error.category)}\nDetails: {error}")


def render_polling_error(error: PollingError) -> None:
    if isinstance(error, PollingTimeout):
        st.warning(f"{error} The job may still finish on the server.")
    elif isinstance(error, BacktestFailed):
        st.error(str(error))
    else:
        st.error(f"Backtest could not be started.\nDetails: {error}")
