from __future__ import annotations

import time
from typing import Any, Callable, Dict, List

import streamlit as st
from loguru import logger

from backtest_console.components.error_banner import render_error, render_polling_error
from backtest_console.components.results_view import render_results
from backtest_console.components.status_badge import render_status_badge
from backtest_console.components.terminal import render_terminal
from backtest_console.components.toast import success as toast_success
from backtest_console.components.toast import warning as toast_warning
from backtest_console.core.polling import BacktestPoller, PollConfig, PollingError, PollProgress
from backtest_console.core.results import CompletedBacktest
from backtest_console.core.strategy_files import (
    StrategyInputError,
    format_strategy,
    load_dropped,
    load_selected,
    parse_editor,
    resolve_strategy_name,
)
from backtest_console.services.http_client import ServiceError
from backtest_console.state.session import get_services, get_session_state, get_settings
from backtest_console.utils.telemetry import ui_action_span

EDITOR_KEY = "backtest-editor"
NAME_KEY = "backtest-name"
UPLOAD_KEY = "backtest-upload"


def _set_editor(document: Any) -> None:
    st.session_state[EDITOR_KEY] = format_strategy(document)


def _template_loader(label: str, fetch_name: str) -> Callable[[], None]:
    def load() -> None:
        services = get_services()
        state = get_session_state()
        state.add_terminal_line(f"> Fetching {label} strategy...")
        with ui_action_span("backtest.template", template=label):
            try:
                document = getattr(services.backtests, fetch_name)()
            except ServiceError as err:
                logger.warning("template fetch failed template={} error={}", label, err)
                state.add_terminal_line(f"> ERROR: Failed to fetch {label} strategy")
                return
        _set_editor(document)
        state.add_terminal_line(f"> ✅ {label} strategy loaded into editor")

    return load


TEMPLATES = {
    "Default": _template_loader("default", "default_strategy"),
    "BUY": _template_loader("BUY", "buy_strategy"),
    "SELL": _template_loader("SELL", "sell_strategy"),
    "DUAL": _template_loader("DUAL", "dual_template"),
}


def _on_upload() -> None:
    state = get_session_state()
    uploads = st.session_state.get(UPLOAD_KEY) or []
    if not uploads:
        return
    result = load_dropped(uploads) if len(uploads) > 1 else load_selected(uploads[0])
    if not result.success:
        state.add_terminal_line(f"> ⚠️ {result.error}")
        return
    st.session_state[EDITOR_KEY] = result.content
    st.session_state[NAME_KEY] = resolve_strategy_name(
        st.session_state.get(NAME_KEY, ""), result
    )
    state.add_terminal_line(f"> ✅ Loaded strategy from: {result.file_name}")


def _render_editor() -> None:
    st.subheader("Strategy")
    cols = st.columns(len(TEMPLATES))
    for col, (label, loader) in zip(cols, TEMPLATES.items()):
        col.button(label, key=f"template-{label}", on_click=loader, use_container_width=True)
    st.file_uploader(
        "Drop a strategy .json file",
        accept_multiple_files=True,
        key=UPLOAD_KEY,
        on_change=_on_upload,
    )
    st.text_input("Strategy name", key=NAME_KEY)
    st.text_area("Strategy JSON", key=EDITOR_KEY, height=320)


def _progress_renderer(slot, started: float) -> Callable[[str, Any], None]:
    state = get_session_state()

    def on_phase(phase: str, data: Any) -> None:
        progress = data if isinstance(data, PollProgress) else None
        if phase == "enqueuing":
            state.add_terminal_line("> Submitting strategy...")
        elif phase == "polling":
            state.add_terminal_line(f"> ✅ Enqueued with job_id={data['job_id']}")
        elif phase == "too_frequent":
            state.add_terminal_line("> ⚠️ Too frequent, waiting before next poll...")
        elif phase == "error" and progress is not None:
            state.add_terminal_line(f"> ⚠️ Polling error: {progress.error}")
        elif phase == "finished" and progress is None:
            state.add_terminal_line("> ✅ Results ready")

        with slot.container():
            render_status_badge(phase)
            percent = 100 if phase == "finished" else (progress.percent if progress else 0)
            st.progress(percent, text=f"{phase} · {time.time() - started:.0f}s elapsed")
            render_terminal(state.terminal_lines)

    return on_phase


def _run_backtest(slot) -> None:
    services = get_services()
    settings = get_settings()
    state = get_session_state()

    state.start_backtest()
    try:
        strategy = parse_editor(st.session_state.get(EDITOR_KEY, ""))
    except StrategyInputError as err:
        state.add_terminal_line(f"> ERROR: {err}")
        st.error(str(err))
        return
    name = st.session_state.get(NAME_KEY, "").strip()
    if name and not strategy.get("name"):
        strategy["name"] = name

    request_id = state.new_request_id()
    poller = BacktestPoller(services.backtests, PollConfig.from_settings(settings))
    render_phase = _progress_renderer(slot, time.time())
    job: Dict[str, str] = {}

    def on_phase(phase: str, data: Any) -> None:
        if phase == "polling":
            job["id"] = data["job_id"]
        render_phase(phase, data)

    with ui_action_span("backtest.run"):
        try:
            payload = poller.run(strategy, on_phase, request_id=request_id)
        except PollingError as err:
            state.record_action("backtest.run", "error", time.time())
            state.add_terminal_line(f"> ERROR: {err}")
            render_polling_error(err)
            return
        except ServiceError as err:
            state.record_action("backtest.run", "error", time.time())
            state.add_terminal_line(f"> ERROR: Backtest failed: {err}")
            render_error(err)
            return

    backtest = CompletedBacktest.from_finished(job["id"], payload, strategy)
    state.finish_backtest(backtest)
    state.add_terminal_line(f"> 📊 Loaded {len(backtest.bars)} bars records")
    if backtest.bars_buy is not None:
        state.add_terminal_line(f"> 📈 Loaded {len(backtest.bars_buy)} BUY bars records")
    if backtest.bars_sell is not None:
        state.add_terminal_line(f"> 📉 Loaded {len(backtest.bars_sell)} SELL bars records")
    state.record_action("backtest.run", "finished", time.time())
    toast_success("Backtest finished")


def _save_strategy(backtest: CompletedBacktest, name: str, description: str) -> None:
    services = get_services()
    state = get_session_state()
    request_id = state.new_request_id()
    state.add_terminal_line("> 💾 Saving strategy to server...")
    with ui_action_span("backtest.save"):
        try:
            created = services.strategies.create(
                name, backtest.strategy, description or None, request_id=request_id
            )
        except ServiceError as err:
            state.record_action("strategy.save", "error", time.time())
            state.add_terminal_line(f"> ❌ Save failed: {err}")
            render_error(err)
            return
        strategy_id = created.get("id")
        state.add_terminal_line(f"> ✅ Strategy created with ID: {strategy_id}")
        if backtest.analytics:
            try:
                services.strategies.save_results(strategy_id, backtest.analytics)
                state.add_terminal_line("> ✅ Analytics saved to strategy")
            except ServiceError as err:
                logger.warning("analytics save failed strategy_id={} error={}", strategy_id, err)
                state.add_terminal_line("> ⚠️ Analytics save failed")
                toast_warning("Strategy saved without analytics")
    state.record_action("strategy.save", "ok", time.time())
    state.add_terminal_line(f"> 💾 Strategy saved: {name}")
    toast_success(f"Saved {name}")


def _render_save_form(backtest: CompletedBacktest) -> None:
    with st.form("save_strategy_form", clear_on_submit=True):
        st.markdown("**Save as strategy**")
        name = st.text_input("Name", value=backtest.name)
        description = st.text_input("Description")
        submit = st.form_submit_button("Save strategy")
    if submit:
        if not name.strip():
            st.error("Strategy name is required.")
            return
        _save_strategy(backtest, name.strip(), description.strip())


def _load_saved_list() -> List[Dict[str, Any]]:
    services = get_services()
    try:
        return services.strategies.list_strategies() or []
    except ServiceError as err:
        st.warning("Could not load saved strategies.")
        render_error(err)
        return []


def _load_saved(item: Dict[str, Any]) -> None:
    services = get_services()
    state = get_session_state()
    try:
        strategy = services.strategies.get(item["id"])
    except ServiceError as err:
        logger.warning("strategy load failed id={} error={}", item["id"], err)
        state.add_terminal_line("> ❌ Failed to load strategy")
        return
    _set_editor(strategy.get("config") or {})
    st.session_state[NAME_KEY] = strategy.get("name") or ""
    state.add_terminal_line(f"> 📂 Loaded strategy: {strategy.get('name')}")


def _delete_saved(item: Dict[str, Any]) -> None:
    services = get_services()
    state = get_session_state()
    try:
        services.strategies.delete(item["id"])
    except ServiceError as err:
        logger.warning("strategy delete failed id={} error={}", item["id"], err)
        state.add_terminal_line("> ❌ Failed to delete strategy")
        return
    state.add_terminal_line("> 🗑️ Strategy deleted from server")


def _render_saved_strategies() -> None:
    st.subheader("Saved strategies")
    saved = _load_saved_list()
    if not saved:
        st.caption("No saved strategies yet.")
        return
    by_label = {f"{item.get('name')} (#{item.get('id')})": item for item in saved}
    label = st.selectbox("Strategy", list(by_label), key="saved-strategy")
    item = by_label[label]
    load_col, delete_col = st.columns(2)
    load_col.button("Load", key="saved-load", on_click=_load_saved, args=(item,))
    delete_col.button("Delete", key="saved-delete", on_click=_delete_saved, args=(item,))


def render() -> None:
    st.title("Backtest")
    state = get_session_state()
    settings = get_settings()

    editor_col, side_col = st.columns([3, 2])
    with editor_col:
        _render_editor()
        run = st.button("Run backtest", type="primary")
    with side_col:
        _render_saved_strategies()
        st.subheader("Terminal")
        slot = st.empty()
        if st.button("Clear terminal"):
            state.clear_terminal()

    if run:
        _run_backtest(slot)
    else:
        with slot.container():
            render_terminal(state.terminal_lines)

    backtest = state.completed
    if backtest is None:
        return
    st.divider()
    render_results(state, backtest, settings)
    _render_save_form(backtest)
