from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

import streamlit as st

from backtest_console.core.bars_table import SortState
from backtest_console.core.exports import DownloadCache
from backtest_console.core.results import CompletedBacktest
from backtest_console.logging_utils import set_request_id
from backtest_console.services.auth import User
from backtest_console.services.registry import ServicesRegistry
from backtest_console.settings.config import AppSettings
from backtest_console.utils.request_id import generate_request_id

STATE_KEY = "_console_state"
MAX_TERMINAL_LINES = 200


@dataclass
class LastAction:
    name: str
    status: str
    timestamp: float
    request_id: str


@dataclass
class SessionState:
    token: Optional[str] = None
    user: Optional[User] = None
    terminal_lines: List[str] = field(default_factory=list)
    completed: Optional[CompletedBacktest] = None
    history: List[CompletedBacktest] = field(default_factory=list)
    download_cache: DownloadCache = field(default_factory=DownloadCache)
    bar_sorts: Dict[str, SortState] = field(default_factory=dict)
    bar_offsets: Dict[str, int] = field(default_factory=dict)
    session_id: str = field(default_factory=lambda: generate_request_id("session"))
    last_request_id: str = field(default_factory=generate_request_id)
    last_actions: List[LastAction] = field(default_factory=list)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    @property
    def is_admin(self) -> bool:
        return bool(self.user and self.user.is_admin)

    def new_request_id(self) -> str:
        self.last_request_id = generate_request_id()
        set_request_id(self.last_request_id)
        return self.last_request_id

    def record_action(self, name: str, status: str, ts: float) -> None:
        self.last_actions.append(
            LastAction(name=name, status=status, timestamp=ts, request_id=self.last_request_id)
        )
        self.last_actions = self.last_actions[-20:]

    def add_terminal_line(self, line: str, *, now: Optional[datetime] = None) -> None:
        stamp = (now or datetime.now()).strftime("%H:%M:%S")
        self.terminal_lines.append(f"[{stamp}] {line}")
        self.terminal_lines = self.terminal_lines[-MAX_TERMINAL_LINES:]

    def clear_terminal(self) -> None:
        self.terminal_lines = []

    def sign_in(self, token: str, user: User) -> None:
        self.token = token
        self.user = user

    def sign_out(self) -> None:
        self.token = None
        self.user = None
        self.completed = None
        self.history = []
        self.download_cache.clear()

    def start_backtest(self) -> None:
        """A new run drops the previous result and every cached server archive."""
        self.completed = None
        self.download_cache.clear()
        self.bar_sorts = {}
        self.bar_offsets = {}

    def finish_backtest(self, backtest: CompletedBacktest) -> None:
        self.completed = backtest
        self.history = [item for item in self.history if item.id != backtest.id]
        self.history.append(backtest)


def get_session_state() -> SessionState:
    if STATE_KEY not in st.session_state:
        st.session_state[STATE_KEY] = SessionState()
    return st.session_state[STATE_KEY]


def set_settings(settings: AppSettings) -> None:
    st.session_state["_ui_settings"] = settings


def get_settings() -> AppSettings:
    return st.session_state["_ui_settings"]


def set_services(services: ServicesRegistry) -> None:
    st.session_state["_ui_services"] = services


def get_services() -> ServicesRegistry:
    return st.session_state["_ui_services"]


def has_services() -> bool:
    return "_ui_services" in st.session_state
