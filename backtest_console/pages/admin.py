from __future__ import annotations

import time
from typing import Any, Dict, List

import pandas as pd
import streamlit as st

from backtest_console.components.error_banner import render_error
from backtest_console.components.status_badge import render_status_badge
from backtest_console.components.toast import success as toast_success
from backtest_console.services.http_client import ServiceError
from backtest_console.state.session import get_services, get_session_state, get_settings
from backtest_console.utils.telemetry import ui_action_span

EXCHANGES = ("binance", "bybit", "okx")


def user_payload(
    username: str, password: str, is_admin: bool, activated: bool, *, creating: bool
) -> Dict[str, Any]:
    """An empty password on edit leaves the stored one unchanged."""
    if creating and (not username or not password):
        raise ValueError("Username and password are required")
    payload: Dict[str, Any] = {"is_admin": is_admin, "activated": activated}
    if creating:
        payload["username"] = username
    if password:
        payload["password"] = password
    return payload


def symbol_payload(exchange: str, symbol: str, enabled: bool) -> Dict[str, Any]:
    if not symbol.strip():
        raise ValueError("Symbol is required")
    return {"exchange": exchange, "symbol": symbol.strip().upper(), "enabled": enabled}


def _call(action: str, func, *args) -> Any:
    state = get_session_state()
    state.new_request_id()
    with ui_action_span(action):
        try:
            result = func(*args)
        except ServiceError as err:
            state.record_action(action, "error", time.time())
            render_error(err)
            return None
    state.record_action(action, "ok", time.time())
    return result


def _safe_list(label: str, func) -> List[Dict[str, Any]]:
    try:
        return func() or []
    except ServiceError as err:
        st.warning(f"{label} unavailable. See details below.")
        render_error(err)
        return []


def _render_users() -> None:
    services = get_services()
    users = _safe_list("Users", services.admin.list_users)
    if users:
        st.dataframe(pd.DataFrame(users), use_container_width=True, hide_index=True)

    with st.expander("Create user"):
        with st.form("create_user_form", clear_on_submit=True):
            username = st.text_input("Username")
            password = st.text_input("Password", type="password")
            is_admin = st.checkbox("Admin")
            activated = st.checkbox("Activated", value=True)
            if st.form_submit_button("Create"):
                try:
                    payload = user_payload(
                        username.strip(), password, is_admin, activated, creating=True
                    )
                except ValueError as exc:
                    st.error(str(exc))
                else:
                    if _call("admin.users.create", services.admin.create_user, payload):
                        toast_success(f"User {username} created")
                        st.rerun()

    if not users:
        return
    by_label = {f"{u.get('username')} (#{u.get('id')})": u for u in users}
    user = by_label[st.selectbox("Edit user", list(by_label), key="admin-user")]
    with st.form(f"edit_user_form_{user['id']}"):
        password = st.text_input("New password (optional)", type="password")
        is_admin = st.checkbox("Admin", value=bool(user.get("is_admin")))
        activated = st.checkbox("Activated", value=bool(user.get("activated")))
        save = st.form_submit_button("Save changes")
    if save:
        payload = user_payload("", password, is_admin, activated, creating=False)
        if _call("admin.users.update", services.admin.update_user, user["id"], payload):
            toast_success("User updated")
            st.rerun()

    toggle_col, delete_col = st.columns(2)
    toggle_label = "Deactivate" if user.get("activated") else "Activate"
    if toggle_col.button(toggle_label, key=f"toggle-user-{user['id']}"):
        payload = {"activated": not user.get("activated")}
        if _call("admin.users.update", services.admin.update_user, user["id"], payload):
            st.rerun()
    if delete_col.button("Delete user", key=f"delete-user-{user['id']}"):
        if _call("admin.users.delete", services.admin.delete_user, user["id"]) is not None:
            toast_success("User deleted")
            st.rerun()


def _render_symbols() -> None:
    services = get_services()
    symbols = _safe_list("Symbols", services.admin.list_symbols)
    if symbols:
        st.dataframe(pd.DataFrame(symbols), use_container_width=True, hide_index=True)

    with st.expander("Add symbol"):
        with st.form("create_symbol_form", clear_on_submit=True):
            exchange = st.selectbox("Exchange", EXCHANGES)
            symbol = st.text_input("Symbol", placeholder="BTC/USDT")
            enabled = st.checkbox("Enabled", value=True)
            if st.form_submit_button("Add"):
                try:
                    payload = symbol_payload(exchange, symbol, enabled)
                except ValueError as exc:
                    st.error(str(exc))
                else:
                    if _call("admin.symbols.create", services.admin.create_symbol, payload):
                        toast_success(f"{payload['symbol']} added")
                        st.rerun()

    if not symbols:
        return
    by_label = {f"{s.get('exchange')}:{s.get('symbol')} (#{s.get('id')})": s for s in symbols}
    row = by_label[st.selectbox("Edit symbol", list(by_label), key="admin-symbol")]
    with st.form(f"edit_symbol_form_{row['id']}"):
        exchange_index = EXCHANGES.index(row["exchange"]) if row.get("exchange") in EXCHANGES else 0
        exchange = st.selectbox("Exchange", EXCHANGES, index=exchange_index)
        symbol = st.text_input("Symbol", value=row.get("symbol") or "")
        enabled = st.checkbox("Enabled", value=bool(row.get("enabled")))
        save = st.form_submit_button("Save changes")
    if save:
        try:
            payload = symbol_payload(exchange, symbol, enabled)
        except ValueError as exc:
            st.error(str(exc))
        else:
            if _call("admin.symbols.update", services.admin.update_symbol, row["id"], payload):
                toast_success("Symbol updated")
                st.rerun()

    toggle_col, delete_col = st.columns(2)
    toggle_label = "Disable" if row.get("enabled") else "Enable"
    if toggle_col.button(toggle_label, key=f"toggle-symbol-{row['id']}"):
        payload = {"enabled": not row.get("enabled")}
        if _call("admin.symbols.update", services.admin.update_symbol, row["id"], payload):
            st.rerun()
    if delete_col.button("Delete symbol", key=f"delete-symbol-{row['id']}"):
        if _call("admin.symbols.delete", services.admin.delete_symbol, row["id"]) is not None:
            toast_success("Symbol deleted")
            st.rerun()


def _render_sync_status() -> None:
    services = get_services()
    try:
        status = services.admin.sync_status() or {}
    except ServiceError as err:
        render_error(err)
        return
    running = bool(status.get("running"))
    render_status_badge("running" if running else "idle")
    st.caption("Synchronization in progress" if running else "No active synchronization")
    details = status.get("details") or []
    if not details:
        st.info("No exchanges configured")
        return
    for entry in details:
        state = "Running" if entry.get("running") else "Stopped"
        st.write(f"**{entry.get('exchange')}**: {state}")


def _render_sync() -> None:
    services = get_services()
    settings = get_settings()
    st.fragment(run_every=settings.sync_refresh_secs)(_render_sync_status)()
    if st.button("Start sync", type="primary"):
        result = _call("admin.sync.start", services.admin.start_sync)
        if result is not None:
            jobs = ", ".join(str(job) for job in result.get("jobs") or [])
            toast_success(f"Sync started. Jobs: {jobs or 'none'}")


def render() -> None:
    st.title("Admin")
    state = get_session_state()
    if not state.is_admin:
        st.error("Admin access required.")
        return
    users_tab, symbols_tab, sync_tab = st.tabs(["Users", "Symbols", "Sync"])
    with users_tab:
        _render_users()
    with symbols_tab:
        _render_symbols()
    with sync_tab:
        _render_sync()
