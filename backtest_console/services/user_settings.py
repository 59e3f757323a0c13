from __future__ import annotations

from typing import Any

from backtest_console.services.api_routes import ROUTES
from backtest_console.services.http_client import HttpClient


class UserSettingsService:
    """Per-user exchange API keys and Telegram notification settings."""

    def __init__(self, client: HttpClient) -> None:
        self.client = client

    def save_api_keys(self, exchange: str, api_key: str, api_secret: str) -> Any:
        return self.client.request(
            "POST",
            ROUTES.api_keys,
            json={"exchange": exchange, "api_key": api_key, "api_secret": api_secret},
            ui_action="settings.api_keys.save",
        )

    def get_api_keys(self, exchange: str) -> Any:
        path = ROUTES.api_key.format(exchange=exchange)
        return self.client.request("GET", path, ui_action="settings.api_keys.get")

    def update_api_keys(self, exchange: str, api_key: str, api_secret: str) -> Any:
        path = ROUTES.api_key.format(exchange=exchange)
        return self.client.request(
            "PUT",
            path,
            json={"exchange": exchange, "api_key": api_key, "api_secret": api_secret},
            ui_action="settings.api_keys.update",
        )

    def delete_api_keys(self, exchange: str) -> Any:
        path = ROUTES.api_key.format(exchange=exchange)
        return self.client.request("DELETE", path, ui_action="settings.api_keys.delete")

    def save_telegram(self, token: str, chat_id: str) -> Any:
        return self.client.request(
            "POST",
            ROUTES.telegram,
            json={"token": token, "chat_id": chat_id},
            ui_action="settings.telegram.save",
        )

    def get_telegram(self) -> Any:
        return self.client.request("GET", ROUTES.telegram, ui_action="settings.telegram.get")

    def update_telegram(self, token: str, chat_id: str) -> Any:
        return self.client.request(
            "PUT",
            ROUTES.telegram,
            json={"token": token, "chat_id": chat_id},
            ui_action="settings.telegram.update",
        )

    def delete_telegram(self) -> Any:
        return self.client.request(
            "DELETE", ROUTES.telegram, ui_action="settings.telegram.delete"
        )
