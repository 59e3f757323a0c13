from __future__ import annotations

from dataclasses import fields
from datetime import datetime

from backtest_console.core.bars_table import SortState
from backtest_console.core.results import CompletedBacktest
from backtest_console.services.auth import User
from backtest_console.state.session import MAX_TERMINAL_LINES, SessionState


def _backtest(job_id: str) -> CompletedBacktest:
    return CompletedBacktest(id=job_id, strategy_type="single", strategy={}, analytics={})


def test_terminal_lines_are_timestamped_and_capped():
    state = SessionState()
    now = datetime(2025, 1, 1, 9, 30, 5)

    for i in range(MAX_TERMINAL_LINES + 5):
        state.add_terminal_line(f"> line {i}", now=now)

    assert len(state.terminal_lines) == MAX_TERMINAL_LINES
    assert state.terminal_lines[-1] == f"[09:30:05] > line {MAX_TERMINAL_LINES + 4}"


def test_starting_a_backtest_clears_result_and_download_cache():
    state = SessionState()
    state.finish_backtest(_backtest("job-1"))
    state.download_cache.fetch("job-1", lambda _job: b"zip")
    state.bar_sorts["job-1-bars"] = SortState("close")

    state.start_backtest()

    assert state.completed is None
    assert len(state.download_cache) == 0
    assert state.bar_sorts == {}
    assert [b.id for b in state.history] == ["job-1"]


def test_finishing_the_same_job_twice_keeps_one_history_entry():
    state = SessionState()
    state.finish_backtest(_backtest("job-1"))
    state.finish_backtest(_backtest("job-1"))

    assert len(state.history) == 1


def test_sign_in_and_out():
    state = SessionState()
    user = User(id=0, username="admin", is_admin=True, activated=True, created_at="")

    state.sign_in("tok", user)
    assert state.is_authenticated and state.is_admin

    state.finish_backtest(_backtest("job-1"))
    state.sign_out()
    assert not state.is_authenticated
    assert not state.is_admin
    assert state.history == []


def test_record_action_keeps_last_twenty():
    state = SessionState()
    request_id = state.new_request_id()

    for i in range(25):
        state.record_action(f"action.{i}", "ok", float(i))

    assert len(state.last_actions) == 20
    assert state.last_actions[0].name == "action.5"
    assert state.last_actions[-1].request_id == request_id


def test_editor_contents_are_not_duplicated_in_session_state():
    names = {item.name for item in fields(SessionState)}

    assert "editor_text" not in names
    assert "strategy_name" not in names
