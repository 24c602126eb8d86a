"""Unit tests for JWT handler and caller dependencies."""

from datetime import timedelta
from unittest.mock import patch

import pytest
from fastapi import HTTPException
from jose import jwt

from config.settings import settings
from src.tm_common.errors import AdminRequiredError, InvalidCredentialsError
from src.tm_gateway.auth.dependencies import Caller, get_current_caller, require_admin
from src.tm_gateway.auth.jwt_handler import ADMIN_ROLE, create_access_token, decode_token


def test_access_token_contains_correct_claims() -> None:
    payload = jwt.get_unverified_claims(create_access_token("user-123"))
    assert payload["sub"] == "user-123"
    assert payload["type"] == "access"
    assert payload["role"] == "user"


def test_decode_valid_access_token() -> None:
    payload = decode_token(create_access_token("user-abc", role=ADMIN_ROLE))
    assert payload["sub"] == "user-abc"
    assert payload["role"] == ADMIN_ROLE


def test_expired_token_raises_credentials_error() -> None:
    with patch("src.tm_gateway.auth.jwt_handler._ACCESS_EXPIRE", timedelta(seconds=-1)):
        token = create_access_token("user-abc")
    with pytest.raises(InvalidCredentialsError):
        decode_token(token)


def test_wrong_secret_raises() -> None:
    token = jwt.encode({"sub": "x", "type": "access"}, "other-secret", algorithm="HS256")
    with pytest.raises(InvalidCredentialsError):
        decode_token(token)


def test_non_access_token_rejected() -> None:
    token = jwt.encode(
        {"sub": "x", "type": "refresh"}, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM
    )
    with pytest.raises(InvalidCredentialsError):
        decode_token(token)


async def test_get_current_caller_regular_user() -> None:
    caller = await get_current_caller(create_access_token("alice"))
    assert caller == Caller(user_id="alice", is_admin=False)


async def test_get_current_caller_admin() -> None:
    caller = await get_current_caller(create_access_token("root", role=ADMIN_ROLE))
    assert caller.is_admin


async def test_get_current_caller_bad_token() -> None:
    with pytest.raises(HTTPException) as exc_info:
        await get_current_caller("not-a-jwt")
    assert exc_info.value.status_code == 401


async def test_require_admin_rejects_user() -> None:
    with pytest.raises(AdminRequiredError):
        await require_admin(Caller(user_id="alice"))


async def test_require_admin_passes_admin() -> None:
    admin = Caller(user_id="root", is_admin=True)
    assert await require_admin(admin) is admin
