from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from backtest_console import __version__


class SettingsError(RuntimeError):
    """Raised when required UI settings are missing or invalid."""


@dataclass(frozen=True)
class AppSettings:
    api_base_url: str
    use_mock_api: bool
    api_timeout_secs: float
    poll_interval_secs: float
    too_frequent_delay_secs: float
    poll_error_delay_secs: float
    max_poll_attempts: int
    sync_refresh_secs: float
    bars_row_height_px: int
    bars_viewport_px: int
    service_name: str
    environment: str
    app_version: str
    log_level: str
    otel_endpoint: Optional[str]
    otel_protocol: Optional[str]
    otel_resource_attributes: Optional[str]
    otel_headers: Optional[str]


DEFAULT_API_BASE_URL = "http://127.0.0.1:8000"


def load_env_files(*candidates: Path) -> None:
    for candidate in candidates or (Path(".env.dev"), Path(".env")):
        if candidate.exists():
            load_dotenv(candidate, override=False)


def _get_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise SettingsError(f"{name} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise SettingsError(f"{name} must be positive, got {raw!r}")
    return value


def _get_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise SettingsError(f"{name} must be an integer, got {raw!r}") from exc
    if value <= 0:
        raise SettingsError(f"{name} must be positive, got {raw!r}")
    return value


def load_settings() -> AppSettings:
    base_url = (os.getenv("API_BASE_URL") or DEFAULT_API_BASE_URL).strip()
    if not base_url.startswith(("http://", "https://")):
        raise SettingsError(
            f"API_BASE_URL must start with http:// or https://, got {base_url!r}"
        )

    return AppSettings(
        api_base_url=base_url.rstrip("/"),
        use_mock_api=_get_bool("USE_MOCK_API"),
        api_timeout_secs=_get_float("API_TIMEOUT_SECS", 120.0),
        poll_interval_secs=_get_float("BACKTEST_POLL_INTERVAL_SECS", 2.0),
        too_frequent_delay_secs=_get_float("BACKTEST_TOO_FREQUENT_DELAY_SECS", 10.0),
        poll_error_delay_secs=_get_float("BACKTEST_POLL_ERROR_DELAY_SECS", 5.0),
        max_poll_attempts=_get_int("BACKTEST_MAX_POLL_ATTEMPTS", 150),
        sync_refresh_secs=_get_float("SYNC_REFRESH_SECS", 5.0),
        bars_row_height_px=_get_int("BARS_ROW_HEIGHT_PX", 32),
        bars_viewport_px=_get_int("BARS_VIEWPORT_PX", 640),
        service_name=os.getenv("SERVICE_NAME", "backtest-console"),
        environment=os.getenv("ENV", "dev"),
        app_version=os.getenv("APP_VERSION", __version__),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        otel_endpoint=os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT"),
        otel_protocol=os.getenv("OTEL_EXPORTER_OTLP_PROTOCOL"),
        otel_resource_attributes=os.getenv("OTEL_RESOURCE_ATTRIBUTES"),
        otel_headers=os.getenv("OTEL_EXPORTER_OTLP_HEADERS"),
    )
