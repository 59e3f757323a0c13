from __future__ import annotations

import base64
import json

import pytest

from backtest_console.services.auth import AuthService, decode_jwt_claims, user_from_token
from backtest_console.services.http_client import ServiceError


def _token(claims) -> str:
    body = base64.urlsafe_b64encode(json.dumps(claims).encode()).decode().rstrip("=")
    return f"header.{body}.signature"


class DummyClient:
    def __init__(self, response):
        self.response = response
        self.calls = []
        self.token = None

    def request(self, method, path, **kwargs):
        self.calls.append({"method": method, "path": path, **kwargs})
        return self.response

    def set_token(self, token):
        self.token = token


def test_decode_handles_urlsafe_alphabet_and_missing_padding():
    claims = {"sub": "trader", "note": "~~~???>>>"}

    assert decode_jwt_claims(_token(claims)) == claims


@pytest.mark.parametrize("token", ["", "only.two", "a.!!!notbase64.c", "a.bm90IGpzb24.c"])
def test_decode_returns_empty_dict_for_unreadable_tokens(token):
    assert decode_jwt_claims(token) == {}


def test_user_from_token_prefers_username_then_sub():
    assert user_from_token(_token({"username": "u1", "sub": "s1"})).username == "u1"
    assert user_from_token(_token({"sub": "s1"})).username == "s1"
    assert user_from_token(_token({})).username == "user"


@pytest.mark.parametrize("flag", ["is_admin", "admin", "isAdmin"])
def test_any_admin_claim_marks_admin(flag):
    assert user_from_token(_token({"sub": "x", flag: True})).is_admin


def test_login_posts_form_fields_and_stores_token():
    token = _token({"sub": "trader"})
    client = DummyClient({"access_token": token, "token_type": "bearer"})
    auth = AuthService(client)

    auth.login("trader", "secret")

    call = client.calls[0]
    assert call["method"] == "POST"
    assert call["path"] == "/auth/login"
    assert call["data"] == {"username": "trader", "password": "secret"}
    assert "json" not in call
    assert auth.token == token
    assert auth.current_user().username == "trader"


def test_login_without_token_is_an_auth_error():
    auth = AuthService(DummyClient({"token_type": "bearer"}))

    with pytest.raises(ServiceError) as excinfo:
        auth.login("trader", "secret")

    assert excinfo.value.category == "auth"


def test_current_user_requires_token():
    auth = AuthService(DummyClient({}))

    with pytest.raises(ServiceError):
        auth.current_user()
    assert not auth.is_authenticated()
