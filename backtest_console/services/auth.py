from __future__ import annotations

import base64
import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from backtest_console.services.api_routes import ROUTES
from backtest_console.services.http_client import HttpClient, ServiceError


@dataclass(frozen=True)
class User:
    id: int
    username: str
    is_admin: bool
    activated: bool
    created_at: str


def decode_jwt_claims(token: str) -> Dict[str, Any]:
    """Return the unverified payload of a JWT, or ``{}`` when it cannot be read.

    The backend signs and verifies tokens; the console only needs the claims
    it displays, so no signature check happens here.
    """
    parts = token.split(".")
    if len(parts) != 3:
        return {}
    segment = parts[1].replace("-", "+").replace("_", "/")
    segment += "=" * (-len(segment) % 4)
    try:
        payload = json.loads(base64.b64decode(segment))
    except (ValueError, UnicodeDecodeError):
        return {}
    return payload if isinstance(payload, dict) else {}


def user_from_token(token: str) -> User:
    claims = decode_jwt_claims(token)
    username = claims.get("username") or claims.get("sub") or "user"
    is_admin = bool(claims.get("is_admin") or claims.get("admin") or claims.get("isAdmin"))
    return User(
        id=0,
        username=str(username),
        is_admin=is_admin,
        activated=True,
        created_at=datetime.now(timezone.utc).isoformat(),
    )


class AuthService:
    def __init__(self, client: HttpClient) -> None:
        self.client = client

    def login(self, username: str, password: str) -> Dict[str, Any]:
        # OAuth2 password flow: the backend expects form fields, not JSON.
        response = self.client.request(
            "POST",
            ROUTES.auth_login,
            data={"username": username, "password": password},
            ui_action="auth.login",
        )
        token = response.get("access_token") if isinstance(response, dict) else None
        if not token:
            raise ServiceError("login response did not include a token", category="auth")
        self.client.set_token(token)
        return response

    def logout(self) -> None:
        self.client.set_token(None)

    def current_user(self) -> User:
        if not self.client.token:
            raise ServiceError("Not authenticated", category="auth")
        return user_from_token(self.client.token)

    def is_authenticated(self) -> bool:
        return bool(self.client.token)

    @property
    def token(self) -> Optional[str]:
        return self.client.token
