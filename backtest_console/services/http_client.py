from __future__ import annotations

import time
from typing import Any, Callable, Dict, Optional

import requests
from loguru import logger

from backtest_console.logging_utils import current_request_id
from backtest_console.settings.config import AppSettings
from backtest_console.utils.request_id import generate_request_id
from backtest_console.utils.telemetry import api_span

STATUS_CATEGORIES = {
    400: "user",
    401: "auth",
    403: "auth",
    404: "not_found",
    422: "user",
    429: "rate_limited",
}


class ServiceError(RuntimeError):
    category: str
    status: Optional[int]

    def __init__(
        self, message: str, *, category: str, status: Optional[int] = None
    ) -> None:
        super().__init__(message)
        self.category = category
        self.status = status


def error_detail(response: requests.Response) -> str:
    """Extract a readable message from a FastAPI-style error body."""
    try:
        payload = response.json()
    except ValueError:
        return response.text or response.reason or ""
    detail = payload.get("detail") if isinstance(payload, dict) else None
    if isinstance(detail, str):
        return detail
    if isinstance(detail, list):
        messages = [
            str(item.get("msg")) for item in detail if isinstance(item, dict) and item.get("msg")
        ]
        if messages:
            return "; ".join(messages)
    return response.text or ""


class HttpClient:
    max_retries = 3
    retry_delay_secs = 2.0

    def __init__(
        self,
        settings: AppSettings,
        *,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.settings = settings
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "User-Agent": f"backtest-console/{settings.app_version}",
                "Accept": "application/json",
            }
        )
        self._sleep = sleep
        self.token: Optional[str] = None
        self.on_unauthorized: Optional[Callable[[], None]] = None

    def set_token(self, token: Optional[str]) -> None:
        self.token = token or None

    def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        data: Optional[Dict[str, Any]] = None,
        ui_action: str = "",
        request_id: Optional[str] = None,
        raw: bool = False,
    ) -> Any:
        url = f"{self.settings.api_base_url}{path}"
        context_id = current_request_id()
        req_id = request_id or (context_id if context_id != "-" else generate_request_id())
        headers = {
            "x-request-id": req_id,
            "x-ui-action": ui_action or path,
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        attempt = 0
        while True:
            attempt += 1
            try:
                with api_span(method, path, ui_action or None):
                    start = time.perf_counter()
                    response = self.session.request(
                        method,
                        url,
                        params=params,
                        json=json,
                        data=data,
                        timeout=self.settings.api_timeout_secs,
                        headers=headers,
                    )
                    latency_ms = (time.perf_counter() - start) * 1000
            except requests.RequestException as exc:
                if attempt > self.max_retries:
                    category_msg = (
                        "network timeout"
                        if isinstance(exc, requests.Timeout)
                        else "network failure"
                    )
                    logger.error(
                        "api unreachable method={} path={} attempts={} request_id={}",
                        method,
                        path,
                        attempt,
                        req_id,
                    )
                    raise ServiceError(category_msg, category="network") from exc
                logger.warning(
                    "api retry method={} path={} attempt={} remaining={} error={}",
                    method,
                    path,
                    attempt,
                    self.max_retries - attempt + 1,
                    exc.__class__.__name__,
                )
                self._sleep(self.retry_delay_secs)
                continue

            if response.status_code >= 400:
                self._handle_error(method, path, response, latency_ms, ui_action)
            logger.info(
                "api success method={} path={} status={} latency_ms={:.1f} request_id={}",
                method,
                path,
                response.status_code,
                latency_ms,
                req_id,
            )
            if raw:
                return response.content
            if not response.content:
                return None
            try:
                return response.json()
            except ValueError as exc:
                raise ServiceError(
                    f"API returned invalid JSON for {path}",
                    category="server",
                    status=response.status_code,
                ) from exc

    def _handle_error(
        self,
        method: str,
        path: str,
        response: requests.Response,
        latency_ms: float,
        action: str,
    ) -> None:
        status = response.status_code
        category = STATUS_CATEGORIES.get(status, "server")
        detail = error_detail(response)
        if status == 401:
            self.token = None
            if self.on_unauthorized is not None:
                self.on_unauthorized()
        if status == 429:
            logger.warning("rate limit exceeded path={}; wait before retrying", path)
        logger.error(
            "api failure method={} path={} status={} ui_action={} latency_ms={:.1f} detail={}",
            method,
            path,
            status,
            action,
            latency_ms,
            detail[:200],
        )
        message = f"API {status}: {detail}"[:400]
        raise ServiceError(message, category=category, status=status)
