from __future__ import annotations

import time
from typing import Any, Optional

import streamlit as st

from backtest_console.components.error_banner import render_error
from backtest_console.components.toast import success as toast_success
from backtest_console.services.http_client import ServiceError
from backtest_console.settings.config import AppSettings
from backtest_console.state.session import get_services, get_session_state
from backtest_console.utils.telemetry import ui_action_span

EXCHANGES = ("binance", "bybit", "okx")


def _fetch_optional(func, *args) -> Optional[Any]:
    """Missing settings come back as 404; show them as not configured."""
    try:
        return func(*args)
    except ServiceError as err:
        if err.category == "not_found":
            return None
        render_error(err)
        return None


def _run(action: str, func, *args) -> bool:
    state = get_session_state()
    state.new_request_id()
    with ui_action_span(action):
        try:
            func(*args)
        except ServiceError as err:
            state.record_action(action, "error", time.time())
            render_error(err)
            return False
    state.record_action(action, "ok", time.time())
    return True


def _render_api_keys() -> None:
    services = get_services()
    st.subheader("Exchange API keys")
    exchange = st.selectbox("Exchange", EXCHANGES, key="settings-exchange")
    current = _fetch_optional(services.user_settings.get_api_keys, exchange)
    if current:
        st.caption(f"Stored key: {current.get('api_key', '****')}")
    else:
        st.caption("No keys stored for this exchange.")

    with st.form("api_keys_form", clear_on_submit=True):
        api_key = st.text_input("API key")
        api_secret = st.text_input("API secret", type="password")
        save = st.form_submit_button("Save keys")
    if save:
        if not api_key or not api_secret:
            st.error("API key and secret are required.")
        elif _run(
            "settings.api_keys.save",
            services.user_settings.save_api_keys,
            exchange,
            api_key,
            api_secret,
        ):
            toast_success(f"{exchange} keys saved")
            st.rerun()
    if current and st.button("Delete keys", key="delete-api-keys"):
        if _run("settings.api_keys.delete", services.user_settings.delete_api_keys, exchange):
            toast_success(f"{exchange} keys deleted")
            st.rerun()


def _render_telegram() -> None:
    services = get_services()
    st.subheader("Telegram notifications")
    current = _fetch_optional(services.user_settings.get_telegram)
    if current:
        st.caption(f"Chat id: {current.get('chat_id')}")
    else:
        st.caption("Telegram is not configured.")

    with st.form("telegram_form", clear_on_submit=True):
        token = st.text_input("Bot token", type="password")
        chat_id = st.text_input("Chat id")
        save = st.form_submit_button("Save Telegram settings")
    if save:
        if not token or not chat_id:
            st.error("Bot token and chat id are required.")
        elif _run("settings.telegram.save", services.user_settings.save_telegram, token, chat_id):
            toast_success("Telegram settings saved")
            st.rerun()
    if current and st.button("Delete Telegram settings", key="delete-telegram"):
        if _run("settings.telegram.delete", services.user_settings.delete_telegram):
            toast_success("Telegram settings deleted")
            st.rerun()


def _render_configuration(settings: AppSettings) -> None:
    st.subheader("Configuration")
    col1, col2 = st.columns(2)
    col1.metric("Environment", settings.environment)
    col1.metric("Service name", settings.service_name)
    col2.metric("API base", settings.api_base_url)
    col2.metric("Version", settings.app_version)
    st.json(
        {
            "USE_MOCK_API": settings.use_mock_api,
            "API_TIMEOUT_SECS": settings.api_timeout_secs,
            "BACKTEST_POLL_INTERVAL_SECS": settings.poll_interval_secs,
            "BACKTEST_TOO_FREQUENT_DELAY_SECS": settings.too_frequent_delay_secs,
            "BACKTEST_POLL_ERROR_DELAY_SECS": settings.poll_error_delay_secs,
            "BACKTEST_MAX_POLL_ATTEMPTS": settings.max_poll_attempts,
            "SYNC_REFRESH_SECS": settings.sync_refresh_secs,
        }
    )
    st.markdown("**Telemetry**")
    st.json(
        {
            "OTEL_EXPORTER_OTLP_ENDPOINT": settings.otel_endpoint,
            "OTEL_EXPORTER_OTLP_PROTOCOL": settings.otel_protocol,
            "OTEL_RESOURCE_ATTRIBUTES": settings.otel_resource_attributes,
        }
    )


def render(settings: AppSettings) -> None:
    st.title("Settings")
    keys_tab, telegram_tab, config_tab = st.tabs(["API keys", "Telegram", "Configuration"])
    with keys_tab:
        _render_api_keys()
    with telegram_tab:
        _render_telegram()
    with config_tab:
        _render_configuration(settings)
