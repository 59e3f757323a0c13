"""CSV and ZIP exports of finished backtests."""

from __future__ import annotations

import io
import json
import re
import zipfile
from datetime import date
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

import pandas as pd
from loguru import logger

from backtest_console.core.results import CompletedBacktest
from backtest_console.services.http_client import ServiceError

POSITION_FILES = {
    "buy_positions": "buy_positions.csv",
    "sell_positions": "sell_positions.csv",
}

_WHITESPACE = re.compile(r"\s+")


def safe_name(name: str) -> str:
    return _WHITESPACE.sub("_", name)


def archive_name(backtest: CompletedBacktest, today: Optional[date] = None) -> str:
    day = (today or date.today()).isoformat()
    kind = "dual" if backtest.strategy_type == "dual" else "single"
    name = backtest.strategy.get("name")
    if not isinstance(name, str) or not name:
        name = "backtest"
    return f"backtest_{kind}_{safe_name(name)}_{day}.zip"


def strategy_file_name(name: str) -> str:
    return f"strategy_{safe_name(name)}.json"


def records_to_csv(records: Sequence[Mapping[str, Any]]) -> str:
    """Column order follows the keys of the first record."""
    if not records:
        return ""
    columns = list(records[0].keys())
    frame = pd.DataFrame.from_records(list(records), columns=columns)
    return frame.to_csv(index=False)


def strategy_info(backtest: CompletedBacktest) -> Dict[str, Any]:
    return {
        "id": backtest.id,
        "name": backtest.name,
        "strategy_type": backtest.strategy_type,
        "strategy": backtest.strategy,
    }


def build_archive(backtest: CompletedBacktest) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        archive.writestr("bars.csv", records_to_csv(backtest.bars))
        if backtest.strategy_type == "dual":
            archive.writestr("bars_buy.csv", records_to_csv(backtest.bars_buy or []))
            archive.writestr("bars_sell.csv", records_to_csv(backtest.bars_sell or []))
            for key, file_name in POSITION_FILES.items():
                positions = backtest.analytics.get(key)
                if isinstance(positions, list) and positions:
                    archive.writestr(file_name, records_to_csv(positions))
        archive.writestr(
            "analytics.json", json.dumps(backtest.analytics, indent=2, default=str)
        )
        archive.writestr(
            "strategy_info.json", json.dumps(strategy_info(backtest), indent=2, default=str)
        )
    return buffer.getvalue()


def archive_members(payload: bytes) -> List[str]:
    with zipfile.ZipFile(io.BytesIO(payload)) as archive:
        return archive.namelist()


class DownloadCache:
    """Server ZIP bytes per job id, kept until the next backtest starts."""

    def __init__(self) -> None:
        self._items: Dict[str, bytes] = {}

    def __contains__(self, job_id: object) -> bool:
        return job_id in self._items

    def __len__(self) -> int:
        return len(self._items)

    def clear(self) -> None:
        self._items.clear()

    def fetch(self, job_id: str, loader: Callable[[str], bytes]) -> bytes:
        if job_id not in self._items:
            logger.info("fetching server archive job_id={}", job_id)
            self._items[job_id] = loader(job_id)
        return self._items[job_id]


def download_archive(
    backtest: CompletedBacktest,
    cache: DownloadCache,
    loader: Callable[[str], bytes],
) -> bytes:
    """Prefer the server ZIP and bundle locally when it is unavailable.

    Saved strategies have no job on the server. A local bundle is never cached,
    so the next download tries the server again.
    """
    if backtest.is_saved:
        return build_archive(backtest)
    try:
        return cache.fetch(backtest.id, loader)
    except ServiceError as err:
        logger.warning(
            "server archive unavailable job_id={} category={}; bundling locally",
            backtest.id,
            err.category,
        )
        return build_archive(backtest)
