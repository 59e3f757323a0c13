"""Loguru configuration helpers for consistent structured console logging."""

from __future__ import annotations

import logging
import os
import sys
from contextvars import ContextVar
from typing import Any, Dict, Optional

from loguru import logger

from backtest_console import __version__

_LOG_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | "
    "req={extra[request_id]} | env={extra[environment]} | "
    "ver={extra[service_version]} | {message}"
)

_ctx_request_id: ContextVar[str] = ContextVar("log_request_id", default="-")
_ctx_environment: ContextVar[str] = ContextVar("log_environment", default="local")
_ctx_service_version: ContextVar[str] = ContextVar(
    "log_service_version", default=__version__
)

_CONTEXT_VARS: Dict[str, ContextVar[str]] = {
    "request_id": _ctx_request_id,
    "environment": _ctx_environment,
    "service_version": _ctx_service_version,
}


def _inject_context(record: Dict[str, Any]) -> Dict[str, Any]:
    extra = record["extra"]
    for key, ctx in _CONTEXT_VARS.items():
        if extra.get(key) in (None, "-"):
            extra[key] = ctx.get()
    return record


def _std_logging_sink(message) -> None:
    record = message.record
    exc = record["exception"]
    exc_info = (exc.type, exc.value, exc.traceback) if exc else None

    log_record = logging.LogRecord(
        name=record["name"],
        level=record["level"].no,
        pathname=record["file"].path,
        lineno=record["line"],
        msg=record["message"],
        args=(),
        exc_info=exc_info,
        func=record["function"],
    )
    for k, v in record["extra"].items():
        setattr(log_record, k, v)

    logging.getLogger(record["name"]).handle(log_record)


def set_request_id(request_id: str) -> None:
    _ctx_request_id.set(request_id)


def current_request_id() -> str:
    return _ctx_request_id.get()


def setup_logging(
    *,
    force: bool = False,
    level: Optional[str] = None,
    environment: Optional[str] = None,
    service_version: Optional[str] = None,
) -> None:
    """Configure Loguru sinks, bridge to stdlib, and attach contextual metadata."""
    if not force and getattr(setup_logging, "_configured", False):
        return

    logger.remove()

    log_level = (level or os.getenv("LOG_LEVEL") or "INFO").upper()
    env_name = environment or os.getenv("ENV", "local")
    version = service_version or __version__

    logger.configure(
        extra={
            "service_version": version,
            "environment": env_name,
            "request_id": "-",
        },
        patcher=_inject_context,
    )
    _ctx_environment.set(env_name)
    _ctx_service_version.set(version)

    logger.add(
        sys.stdout,
        level=log_level,
        format=_LOG_FORMAT,
        enqueue=False,
        backtrace=False,
        diagnose=False,
    )
    logger.add(
        _std_logging_sink,
        level=log_level,
        enqueue=False,
        backtrace=False,
        diagnose=False,
    )

    std_level = getattr(logging, log_level, logging.INFO)
    logging.getLogger().setLevel(std_level)
    setup_logging._configured = True  # type: ignore[attr-defined]


__all__ = ["setup_logging", "set_request_id", "current_request_id"]
