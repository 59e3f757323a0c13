from __future__ import annotations

import pytest

from backtest_console.pages.admin import symbol_payload, user_payload


def test_create_user_requires_username_and_password():
    with pytest.raises(ValueError):
        user_payload("", "pw", False, True, creating=True)
    with pytest.raises(ValueError):
        user_payload("name", "", False, True, creating=True)


def test_create_user_payload():
    assert user_payload("name", "pw", True, False, creating=True) == {
        "username": "name",
        "password": "pw",
        "is_admin": True,
        "activated": False,
    }


def test_edit_without_password_leaves_it_out():
    assert user_payload("", "", False, True, creating=False) == {
        "is_admin": False,
        "activated": True,
    }


def test_symbol_payload_normalises_symbol():
    assert symbol_payload("binance", " btc/usdt ", True) == {
        "exchange": "binance",
        "symbol": "BTC/USDT",
        "enabled": True,
    }
    with pytest.raises(ValueError):
        symbol_payload("binance", "  ", True)
