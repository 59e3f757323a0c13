"""In-process stand-ins for the backend, enabled with ``USE_MOCK_API=true``.

Each mock mirrors the public methods of its real service so pages never need
to know which one they were handed.
"""

from __future__ import annotations

import base64
import io
import json
import zipfile
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from itertools import count
from typing import Any, Dict, List, Optional

from backtest_console.services.auth import User, user_from_token
from backtest_console.services.http_client import ServiceError

MOCK_FINISH_AFTER_POLLS = 3


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _encode_segment(payload: Dict[str, Any]) -> str:
    raw = base64.urlsafe_b64encode(json.dumps(payload).encode("utf-8"))
    return raw.decode("ascii").rstrip("=")


def make_mock_token(username: str, *, is_admin: bool) -> str:
    header = _encode_segment({"alg": "none", "typ": "JWT"})
    body = _encode_segment({"sub": username, "username": username, "is_admin": is_admin})
    return f"{header}.{body}.mock"


def _sample_bars(n: int = 60, *, base: float = 45000.0) -> List[Dict[str, Any]]:
    start = datetime(2025, 1, 1, tzinfo=timezone.utc)
    rows = []
    price = base
    for i in range(n):
        drift = ((i * 37) % 11 - 5) * 12.5
        open_ = price
        close = price + drift
        rows.append(
            {
                "timestamp": (start + timedelta(hours=i)).isoformat(),
                "open": round(open_, 2),
                "high": round(max(open_, close) + 15.0, 2),
                "low": round(min(open_, close) - 15.0, 2),
                "close": round(close, 2),
                "volume": 100 + (i * 13) % 50,
                "signal": None if i % 7 else ("long" if i % 14 == 0 else "short"),
            }
        )
        price = close
    return rows


def _sample_analytics() -> Dict[str, Any]:
    return {
        "n_trades": 24,
        "n_wins": 14,
        "n_losses": 10,
        "winrate": 14 / 24,
        "total_pnl": 6.42,
        "avg_pnl": 0.5,
        "med_pnl": 0.4,
        "std_pnl": 1.2,
        "max_profit": 5.5,
        "max_loss": -3.2,
        "gross_profit": 25.5,
        "gross_loss": -15.2,
        "profit_factor": 1.68,
        "avg_win": 1.5,
        "avg_loss": -0.8,
        "max_drawdown": 7.9,
        "sharpe_ratio": 1.34,
        "max_win_streak": 5,
        "max_loss_streak": 3,
        "avg_duration": 120,
        "max_duration": 480,
        "min_duration": 30,
        "trades": [],
    }


@dataclass
class MockAuthService:
    token: Optional[str] = None

    def login(self, username: str, password: str) -> Dict[str, Any]:
        if not username or not password:
            raise ServiceError("API 401: Incorrect username or password", category="auth", status=401)
        self.token = make_mock_token(username, is_admin=username == "admin")
        return {"access_token": self.token, "token_type": "bearer"}

    def logout(self) -> None:
        self.token = None

    def current_user(self) -> User:
        if not self.token:
            raise ServiceError("Not authenticated", category="auth")
        return user_from_token(self.token)

    def is_authenticated(self) -> bool:
        return bool(self.token)


@dataclass
class MockBacktestService:
    jobs: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    _ids: Any = field(default_factory=lambda: count(1))

    def _enqueue(self, strategy_type: str) -> Dict[str, Any]:
        job_id = f"mock_{next(self._ids)}"
        self.jobs[job_id] = {"polls": 0, "strategy_type": strategy_type}
        return {"status": "enqueued", "job_id": job_id}

    def submit(self, strategy: Dict[str, Any], *, request_id: str | None = None) -> Dict[str, Any]:
        return self._enqueue("single")

    def submit_dual(self, body: Dict[str, Any], *, request_id: str | None = None) -> Dict[str, Any]:
        return self._enqueue("dual")

    def status(
        self,
        job_id: str,
        *,
        start: Optional[int] = None,
        end: Optional[int] = None,
        full: Optional[bool] = None,
    ) -> Dict[str, Any]:
        job = self.jobs.get(job_id)
        if job is None:
            raise ServiceError(f"API 404: job {job_id} not found", category="not_found", status=404)
        job["polls"] += 1
        if job["polls"] < MOCK_FINISH_AFTER_POLLS:
            return {"status": "pending"}
        bars = _sample_bars()
        payload: Dict[str, Any] = {
            "status": "finished",
            "total": len(bars),
            "returned": len(bars),
            "start": 0,
            "end": len(bars),
            "analytics": _sample_analytics(),
            "type_side": "both",
            "bars": bars,
            "min_tf": "1h",
            "strategy_type": job["strategy_type"],
        }
        if job["strategy_type"] == "dual":
            payload["bars_buy"] = _sample_bars(30, base=44000.0)
            payload["bars_sell"] = _sample_bars(30, base=46000.0)
        return payload

    def download(self, job_id: str) -> bytes:
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
            archive.writestr("analytics.json", json.dumps(_sample_analytics(), indent=2))
        return buffer.getvalue()

    def default_strategy(self) -> Dict[str, Any]:
        return {
            "name": "DefaultStrategy",
            "symbol": "BTC/USDT",
            "timeframe": "1h",
            "entry": {"indicator": "rsi", "period": 14, "below": 30},
            "exit": {"indicator": "rsi", "period": 14, "above": 70},
        }

    def buy_strategy(self) -> Dict[str, Any]:
        return {**self.default_strategy(), "name": "BuyStrategy", "side": "buy"}

    def sell_strategy(self) -> Dict[str, Any]:
        return {**self.default_strategy(), "name": "SellStrategy", "side": "sell"}

    def both_strategies(self) -> Dict[str, Any]:
        return {"buy_strategy": self.buy_strategy(), "sell_strategy": self.sell_strategy()}

    def dual_template(self) -> Dict[str, Any]:
        return {"dual_strategy": self.both_strategies()}


@dataclass
class MockStrategyService:
    items: Dict[int, Dict[str, Any]] = field(default_factory=dict)
    _ids: Any = field(default_factory=lambda: count(1))

    def list_strategies(self) -> List[Dict[str, Any]]:
        return list(self.items.values())

    def get(self, strategy_id: int | str) -> Dict[str, Any]:
        item = self.items.get(int(strategy_id))
        if item is None:
            raise ServiceError("API 404: Strategy not found", category="not_found", status=404)
        return item

    def create(
        self,
        name: str,
        config: Dict[str, Any],
        description: Optional[str] = None,
        *,
        request_id: str | None = None,
    ) -> Dict[str, Any]:
        strategy_id = next(self._ids)
        self.items[strategy_id] = {
            "id": strategy_id,
            "name": name,
            "description": description,
            "config": config,
            "metrics": None,
            "created_at": _now(),
        }
        return {"id": strategy_id, "status": "created"}

    def update(
        self,
        strategy_id: int | str,
        name: str,
        config: Dict[str, Any],
        description: Optional[str] = None,
    ) -> Dict[str, Any]:
        item = self.get(strategy_id)
        item.update({"name": name, "config": config, "description": description})
        return {"id": item["id"], "status": "updated"}

    def delete(self, strategy_id: int | str) -> Dict[str, Any]:
        self.get(strategy_id)
        self.items.pop(int(strategy_id))
        return {"status": "deleted", "id": int(strategy_id)}

    def save_results(self, strategy_id: int | str, analytics: Dict[str, Any]) -> Dict[str, Any]:
        self.get(strategy_id)["metrics"] = analytics
        return {"status": "ok"}

    def save_backtest_to_strategy(self, job_id: int | str, strategy_id: int | str) -> Dict[str, Any]:
        self.get(strategy_id)
        return {"status": "ok"}


def _sample_users() -> List[Dict[str, Any]]:
    return [
        {
            "id": 1,
            "username": "admin",
            "is_admin": True,
            "activated": True,
            "created_at": "2025-10-03T08:09:03.250980",
        },
        {
            "id": 2,
            "username": "user1",
            "is_admin": False,
            "activated": True,
            "created_at": "2025-10-04T10:15:22.123456",
        },
    ]


def _sample_symbols() -> List[Dict[str, Any]]:
    return [
        {
            "id": 1,
            "exchange": "binance",
            "symbol": "BTC/USDT",
            "enabled": True,
            "created_at": "2025-10-04T06:57:25.539429",
            "last_run_at": "2025-10-06T08:49:22.776016",
            "next_run_at": "2025-10-06T08:49:32.776016",
        },
        {
            "id": 2,
            "exchange": "binance",
            "symbol": "ETH/USDT",
            "enabled": True,
            "created_at": "2025-10-05T12:30:15.123456",
            "last_run_at": None,
            "next_run_at": None,
        },
    ]


@dataclass
class MockAdminService:
    users: List[Dict[str, Any]] = field(default_factory=_sample_users)
    symbols: List[Dict[str, Any]] = field(default_factory=_sample_symbols)
    sync_running: bool = False

    @staticmethod
    def _find(rows: List[Dict[str, Any]], row_id: int, label: str) -> Dict[str, Any]:
        for row in rows:
            if row["id"] == row_id:
                return row
        raise ServiceError(f"API 404: {label} not found", category="not_found", status=404)

    def list_users(self) -> List[Dict[str, Any]]:
        return list(self.users)

    def get_user(self, user_id: int) -> Dict[str, Any]:
        return self._find(self.users, user_id, "User")

    def create_user(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        user = {
            "id": max((u["id"] for u in self.users), default=0) + 1,
            "username": payload.get("username") or "new_user",
            "is_admin": bool(payload.get("is_admin")),
            "activated": bool(payload.get("activated")),
            "created_at": _now(),
        }
        self.users.append(user)
        return user

    def update_user(self, user_id: int, payload: Dict[str, Any]) -> Dict[str, Any]:
        user = self.get_user(user_id)
        user.update({k: v for k, v in payload.items() if k != "password"})
        return user

    def delete_user(self, user_id: int) -> Dict[str, Any]:
        self.users.remove(self.get_user(user_id))
        return {"detail": "User deleted"}

    def list_symbols(self) -> List[Dict[str, Any]]:
        return list(self.symbols)

    def get_symbol(self, symbol_id: int) -> Dict[str, Any]:
        return self._find(self.symbols, symbol_id, "Symbol")

    def create_symbol(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        symbol = {
            "id": max((s["id"] for s in self.symbols), default=0) + 1,
            "exchange": payload.get("exchange") or "binance",
            "symbol": payload.get("symbol") or "BTC/USDT",
            "enabled": payload.get("enabled", True),
            "created_at": _now(),
            "last_run_at": None,
            "next_run_at": None,
        }
        self.symbols.append(symbol)
        return symbol

    def update_symbol(self, symbol_id: int, payload: Dict[str, Any]) -> Dict[str, Any]:
        symbol = self.get_symbol(symbol_id)
        symbol.update(payload)
        return symbol

    def delete_symbol(self, symbol_id: int) -> Dict[str, Any]:
        self.symbols.remove(self.get_symbol(symbol_id))
        return {"detail": "Symbol deleted"}

    def start_sync(self) -> Dict[str, Any]:
        self.sync_running = True
        return {"jobs": ["job_1", "job_2", "job_3"]}

    def sync_status(self) -> Dict[str, Any]:
        return {
            "running": self.sync_running,
            "details": [{"exchange": "binance", "running": self.sync_running}],
        }


@dataclass
class MockUserSettingsService:
    api_keys: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    telegram: Optional[Dict[str, Any]] = None

    def save_api_keys(self, exchange: str, api_key: str, api_secret: str) -> Dict[str, Any]:
        self.api_keys[exchange] = {
            "exchange": exchange,
            "api_key": f"{api_key[:4]}****",
            "created_at": _now(),
        }
        return {"msg": "API keys saved", "api_key_id": len(self.api_keys)}

    def get_api_keys(self, exchange: str) -> Dict[str, Any]:
        if exchange not in self.api_keys:
            raise ServiceError("API 404: API keys not found", category="not_found", status=404)
        return self.api_keys[exchange]

    def update_api_keys(self, exchange: str, api_key: str, api_secret: str) -> Dict[str, Any]:
        return self.save_api_keys(exchange, api_key, api_secret)

    def delete_api_keys(self, exchange: str) -> Dict[str, Any]:
        self.api_keys.pop(exchange, None)
        return {"detail": "API keys deleted"}

    def save_telegram(self, token: str, chat_id: str) -> Dict[str, Any]:
        self.telegram = {"token": "****", "chat_id": chat_id, "created_at": _now()}
        return {"msg": "Telegram settings saved", "settings_id": 1}

    def get_telegram(self) -> Dict[str, Any]:
        if self.telegram is None:
            raise ServiceError(
                "API 404: Telegram settings not found", category="not_found", status=404
            )
        return self.telegram

    def update_telegram(self, token: str, chat_id: str) -> Dict[str, Any]:
        return self.save_telegram(token, chat_id)

    def delete_telegram(self) -> Dict[str, Any]:
        self.telegram = None
        return {"detail": "Telegram settings deleted"}
