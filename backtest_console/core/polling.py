"""Backtest job submission and status polling.

A strategy is submitted once, the backend answers with a job id, and the job
status is requested until it reports ``finished`` or the attempt ceiling is
reached. Only one request is ever in flight.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional

from loguru import logger

from backtest_console.services.http_client import ServiceError
from backtest_console.settings.config import AppSettings

STATUS_FINISHED = "finished"
STATUS_TOO_FREQUENT = "too_frequent"
STATUS_FAILED = "failed"

DUAL_KEYS = ("buy_strategy", "sell_strategy", "dual_strategy")


class PollingError(RuntimeError):
    """Base class for polling outcomes other than a finished job."""


class PollingTimeout(PollingError):
    def __init__(self, job_id: str, attempts: int) -> None:
        super().__init__(f"Backtest polling timed out after {attempts} attempts")
        self.job_id = job_id
        self.attempts = attempts


class BacktestFailed(PollingError):
    def __init__(self, job_id: str, payload: Mapping[str, Any]) -> None:
        reason = payload.get("message") or payload.get("detail") or "job failed"
        super().__init__(f"Backtest {job_id} failed: {reason}")
        self.job_id = job_id
        self.payload = dict(payload)


@dataclass(frozen=True)
class PollConfig:
    interval_secs: float = 2.0
    too_frequent_delay_secs: float = 10.0
    error_delay_secs: float = 5.0
    max_attempts: int = 150

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "PollConfig":
        return cls(
            interval_secs=settings.poll_interval_secs,
            too_frequent_delay_secs=settings.too_frequent_delay_secs,
            error_delay_secs=settings.poll_error_delay_secs,
            max_attempts=settings.max_poll_attempts,
        )


@dataclass(frozen=True)
class PollProgress:
    job_id: str
    attempt: int
    status: str
    payload: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    @property
    def percent(self) -> int:
        return min(99, self.attempt)


ProgressCallback = Callable[[PollProgress], None]
PhaseCallback = Callable[[str, Any], None]


def is_dual_strategy(strategy: Any) -> bool:
    return isinstance(strategy, Mapping) and any(strategy.get(key) for key in DUAL_KEYS)


class BacktestPoller:
    def __init__(
        self,
        backtests: Any,
        config: PollConfig | None = None,
        *,
        sleep: Callable[[float], None] = time.sleep,
        full: bool = True,
    ) -> None:
        self.backtests = backtests
        self.config = config or PollConfig()
        self._sleep = sleep
        self.full = full

    def submit(self, strategy: Dict[str, Any], *, request_id: str | None = None) -> str:
        if is_dual_strategy(strategy):
            response = self.backtests.submit_dual(strategy, request_id=request_id)
        else:
            response = self.backtests.submit(strategy, request_id=request_id)
        job_id = response.get("job_id") if isinstance(response, Mapping) else None
        if not job_id:
            raise PollingError("Backend did not return a job id")
        logger.info("backtest enqueued job_id={} dual={}", job_id, is_dual_strategy(strategy))
        return str(job_id)

    def poll(
        self, job_id: str, on_progress: Optional[ProgressCallback] = None
    ) -> Dict[str, Any]:
        attempts = 0
        while attempts < self.config.max_attempts:
            try:
                payload = self.backtests.status(job_id, full=self.full)
            except ServiceError as err:
                attempts += 1
                logger.warning(
                    "poll error job_id={} attempt={} category={} error={}",
                    job_id,
                    attempts,
                    err.category,
                    err,
                )
                self._report(on_progress, PollProgress(job_id, attempts, "error", error=str(err)))
                self._sleep(self.config.error_delay_secs)
                continue

            status = str((payload or {}).get("status") or "unknown").lower()
            if status == STATUS_FINISHED:
                self._report(on_progress, PollProgress(job_id, attempts, status, payload))
                logger.info("backtest finished job_id={} attempts={}", job_id, attempts)
                return payload
            if status == STATUS_FAILED:
                self._report(on_progress, PollProgress(job_id, attempts, status, payload))
                raise BacktestFailed(job_id, payload)

            attempts += 1
            self._report(on_progress, PollProgress(job_id, attempts, status, payload))
            if status == STATUS_TOO_FREQUENT:
                logger.info("backend asked to slow down job_id={}", job_id)
                self._sleep(self.config.too_frequent_delay_secs)
            else:
                self._sleep(self.config.interval_secs)

        logger.error("backtest polling timed out job_id={} attempts={}", job_id, attempts)
        raise PollingTimeout(job_id, attempts)

    def run(
        self,
        strategy: Dict[str, Any],
        on_phase: Optional[PhaseCallback] = None,
        *,
        request_id: str | None = None,
    ) -> Dict[str, Any]:
        """Submit ``strategy`` and block until the job finishes."""

        def phase(name: str, data: Any = None) -> None:
            if on_phase is not None:
                on_phase(name, data)

        phase("enqueuing")
        job_id = self.submit(strategy, request_id=request_id)
        phase("polling", {"job_id": job_id})
        result = self.poll(job_id, lambda progress: phase(progress.status, progress))
        phase("finished", result)
        return result

    @staticmethod
    def _report(callback: Optional[ProgressCallback], progress: PollProgress) -> None:
        if callback is not None:
            callback(progress)
