from __future__ import annotations

import time

import streamlit as st
from loguru import logger

from backtest_console.components.error_banner import render_error
from backtest_console.services.http_client import ServiceError
from backtest_console.state.session import get_services, get_session_state
from backtest_console.utils.telemetry import ui_action_span


def render() -> None:
    st.title("Sign in")
    services = get_services()
    state = get_session_state()

    with st.form("login_form"):
        username = st.text_input("Username")
        password = st.text_input("Password", type="password")
        submit = st.form_submit_button("Sign in")

    if not submit:
        return
    if not username.strip() or not password:
        st.error("Enter both username and password.")
        return

    state.new_request_id()
    with ui_action_span("auth.login"):
        try:
            response = services.auth.login(username.strip(), password)
            user = services.auth.current_user()
        except ServiceError as err:
            state.record_action("auth.login", "error", time.time())
            render_error(err)
            return

    state.sign_in(response["access_token"], user)
    state.record_action("auth.login", "ok", time.time())
    logger.info("signed in username={} admin={}", user.username, user.is_admin)
    st.rerun()
