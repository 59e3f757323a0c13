from __future__ import annotations

import streamlit as st
from loguru import logger

from backtest_console.logging_utils import set_request_id, setup_logging
from backtest_console.pages import admin, backtest, dashboard, login
from backtest_console.pages.settings_page import render as render_settings
from backtest_console.services.registry import build_services
from backtest_console.settings.config import SettingsError, load_env_files, load_settings
from backtest_console.state.session import (
    get_services,
    get_session_state,
    has_services,
    set_services,
    set_settings,
)
from backtest_console.utils.telemetry import init_telemetry, set_session_id

PAGE_MAP = {
    "Dashboard": dashboard.render,
    "Backtest": backtest.render,
}


def _sign_out() -> None:
    state = get_session_state()
    services = get_services()
    services.auth.logout()
    state.sign_out()
    logger.info("signed out")
    st.rerun()


def main() -> None:
    st.set_page_config(page_title="Backtest Console", layout="wide")
    load_env_files()
    try:
        settings = load_settings()
    except SettingsError as exc:
        st.error(f"Configuration error: {exc}\nSet API_BASE_URL to continue.")
        setup_logging()
        logger.error("UI failed fast: {}", exc)
        return

    setup_logging(
        level=settings.log_level,
        environment=settings.environment,
        service_version=settings.app_version,
    )
    set_settings(settings)
    init_telemetry(settings)
    state = get_session_state()
    if not has_services():
        services = build_services(settings)
        if services.client is not None:
            services.client.on_unauthorized = state.sign_out
        set_services(services)
    set_request_id(state.last_request_id)
    set_session_id(state.session_id)

    if not state.is_authenticated:
        login.render()
        return

    st.sidebar.title("Navigation")
    st.sidebar.caption(
        f"Signed in as {state.user.username if state.user else 'user'}\n\n"
        f"API base: {settings.api_base_url}\n\nEnv: {settings.environment}\n"
        f"Version: {settings.app_version}"
    )
    pages = list(PAGE_MAP.keys())
    if state.is_admin:
        pages.append("Admin")
    pages.append("Settings")
    page_name = st.sidebar.radio("Go to", pages, key="nav")
    if st.sidebar.button("Sign out"):
        _sign_out()

    if page_name == "Settings":
        render_settings(settings)
    elif page_name == "Admin":
        admin.render()
    else:
        PAGE_MAP[page_name]()


if __name__ == "__main__":
    main()
