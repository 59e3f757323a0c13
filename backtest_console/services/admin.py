from __future__ import annotations

from typing import Any, Dict

from backtest_console.services.api_routes import ROUTES
from backtest_console.services.http_client import HttpClient


class AdminService:
    def __init__(self, client: HttpClient) -> None:
        self.client = client

    # users
    def list_users(self) -> Any:
        return self.client.request("GET", ROUTES.admin_users, ui_action="admin.users.list")

    def get_user(self, user_id: int) -> Any:
        path = ROUTES.admin_user.format(user_id=user_id)
        return self.client.request("GET", path, ui_action="admin.users.get")

    def create_user(self, payload: Dict[str, Any]) -> Any:
        return self.client.request(
            "POST", ROUTES.admin_users, json=payload, ui_action="admin.users.create"
        )

    def update_user(self, user_id: int, payload: Dict[str, Any]) -> Any:
        path = ROUTES.admin_user.format(user_id=user_id)
        return self.client.request("PUT", path, json=payload, ui_action="admin.users.update")

    def delete_user(self, user_id: int) -> Any:
        path = ROUTES.admin_user.format(user_id=user_id)
        return self.client.request("DELETE", path, ui_action="admin.users.delete")

    # parsed symbols
    def list_symbols(self) -> Any:
        return self.client.request(
            "GET", ROUTES.admin_symbols, ui_action="admin.symbols.list"
        )

    def get_symbol(self, symbol_id: int) -> Any:
        path = ROUTES.admin_symbol.format(symbol_id=symbol_id)
        return self.client.request("GET", path, ui_action="admin.symbols.get")

    def create_symbol(self, payload: Dict[str, Any]) -> Any:
        return self.client.request(
            "POST", ROUTES.admin_symbols, json=payload, ui_action="admin.symbols.create"
        )

    def update_symbol(self, symbol_id: int, payload: Dict[str, Any]) -> Any:
        path = ROUTES.admin_symbol.format(symbol_id=symbol_id)
        return self.client.request(
            "PUT", path, json=payload, ui_action="admin.symbols.update"
        )

    def delete_symbol(self, symbol_id: int) -> Any:
        path = ROUTES.admin_symbol.format(symbol_id=symbol_id)
        return self.client.request("DELETE", path, ui_action="admin.symbols.delete")

    # sync
    def start_sync(self) -> Any:
        return self.client.request("POST", ROUTES.sync_start, ui_action="admin.sync.start")

    def sync_status(self) -> Any:
        return self.client.request("GET", ROUTES.sync_status, ui_action="admin.sync.status")
