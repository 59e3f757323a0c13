from __future__ import annotations

from typing import Any, Dict, List

import pytest

from backtest_console.core.polling import (
    BacktestFailed,
    BacktestPoller,
    PollConfig,
    PollingError,
    PollingTimeout,
    PollProgress,
    is_dual_strategy,
)
from backtest_console.services.http_client import ServiceError


class DummyBacktests:
    def __init__(self, statuses: List[Any], job_id: str | None = "job-1") -> None:
        self.statuses = statuses
        self.job_id = job_id
        self.submitted: List[Dict[str, Any]] = []
        self.dual_submitted: List[Dict[str, Any]] = []
        self.status_calls: List[Dict[str, Any]] = []

    def submit(self, strategy, *, request_id=None):
        self.submitted.append(strategy)
        return {"status": "enqueued", "job_id": self.job_id}

    def submit_dual(self, body, *, request_id=None):
        self.dual_submitted.append(body)
        return {"status": "enqueued", "job_id": self.job_id}

    def status(self, job_id, *, full=None, start=None, end=None):
        self.status_calls.append({"job_id": job_id, "full": full})
        item = self.statuses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def _poller(service: DummyBacktests, sleeps: List[float], **config) -> BacktestPoller:
    return BacktestPoller(service, PollConfig(**config), sleep=sleeps.append)


def test_poll_returns_finished_payload_after_pending_states():
    finished = {"status": "finished", "analytics": {"n_trades": 3}, "bars": []}
    service = DummyBacktests([{"status": "pending"}, {"status": "running"}, finished])
    sleeps: List[float] = []
    progress: List[PollProgress] = []

    result = _poller(service, sleeps).poll("job-1", progress.append)

    assert result is finished
    assert sleeps == [2.0, 2.0]
    assert [p.status for p in progress] == ["pending", "running", "finished"]
    assert [p.attempt for p in progress] == [1, 2, 2]
    assert all(call["full"] is True for call in service.status_calls)


def test_too_frequent_waits_longer_before_next_poll():
    service = DummyBacktests([{"status": "too_frequent"}, {"status": "finished"}])
    sleeps: List[float] = []

    _poller(service, sleeps).poll("job-1")

    assert sleeps == [10.0]


def test_transient_errors_count_as_attempts_and_wait_error_delay():
    service = DummyBacktests(
        [
            ServiceError("API 500: boom", category="server", status=500),
            ServiceError("network failure", category="network"),
            {"status": "finished"},
        ]
    )
    sleeps: List[float] = []
    progress: List[PollProgress] = []

    _poller(service, sleeps).poll("job-1", progress.append)

    assert sleeps == [5.0, 5.0]
    assert progress[0].status == "error"
    assert progress[0].error == "API 500: boom"
    assert progress[1].attempt == 2


@pytest.mark.parametrize("category", ["auth", "not_found", "user"])
def test_client_errors_while_polling_are_retried(category):
    finished = {"status": "finished", "bars": []}
    service = DummyBacktests([ServiceError("API 404: job not found", category=category), finished])
    sleeps: List[float] = []

    result = _poller(service, sleeps).poll("job-1")

    assert result is finished
    assert sleeps == [5.0]
    assert len(service.status_calls) == 2


def test_persistent_errors_exhaust_the_attempt_ceiling():
    service = DummyBacktests([ServiceError("API 404: job not found", category="not_found")] * 3)
    sleeps: List[float] = []

    with pytest.raises(PollingTimeout) as excinfo:
        _poller(service, sleeps, max_attempts=3).poll("job-1")

    assert excinfo.value.attempts == 3
    assert sleeps == [5.0, 5.0, 5.0]


def test_polling_times_out_after_max_attempts():
    service = DummyBacktests([{"status": "pending"}] * 3)
    sleeps: List[float] = []

    with pytest.raises(PollingTimeout) as excinfo:
        _poller(service, sleeps, max_attempts=3).poll("job-7")

    assert str(excinfo.value) == "Backtest polling timed out after 3 attempts"
    assert excinfo.value.job_id == "job-7"
    assert len(service.status_calls) == 3


def test_failed_status_raises_backtest_failed():
    service = DummyBacktests([{"status": "failed", "message": "bad config"}])

    with pytest.raises(BacktestFailed) as excinfo:
        _poller(service, []).poll("job-2")

    assert "bad config" in str(excinfo.value)
    assert isinstance(excinfo.value, PollingError)


def test_progress_percent_is_capped_below_complete():
    assert PollProgress("j", 42, "pending").percent == 42
    assert PollProgress("j", 150, "pending").percent == 99


@pytest.mark.parametrize(
    "strategy, expected",
    [
        ({"name": "plain"}, False),
        ({"buy_strategy": {"name": "b"}}, True),
        ({"sell_strategy": {"name": "s"}}, True),
        ({"dual_strategy": {"buy_strategy": {}}}, True),
        ({"buy_strategy": None}, False),
        (["not", "a", "dict"], False),
    ],
)
def test_dual_detection(strategy, expected):
    assert is_dual_strategy(strategy) is expected


def test_run_routes_dual_strategies_to_dual_endpoint():
    service = DummyBacktests([{"status": "finished"}])
    phases: List[str] = []

    BacktestPoller(service, sleep=lambda _s: None).run(
        {"buy_strategy": {"name": "b"}, "sell_strategy": {"name": "s"}},
        lambda phase, _data: phases.append(phase),
    )

    assert service.dual_submitted and not service.submitted
    assert phases == ["enqueuing", "polling", "finished", "finished"]


def test_submit_without_job_id_raises():
    service = DummyBacktests([], job_id=None)

    with pytest.raises(PollingError):
        BacktestPoller(service).submit({"name": "x"})


def test_config_from_settings(settings_factory):
    settings = settings_factory(poll_interval_secs=1.0, max_poll_attempts=7)

    config = PollConfig.from_settings(settings)

    assert config.interval_secs == 1.0
    assert config.max_attempts == 7
    assert config.too_frequent_delay_secs == 10.0
