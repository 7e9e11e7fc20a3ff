# tests/test_auth.py

from __future__ import annotations

import pytest
from fastapi import HTTPException
from jose import jwt

from tasks_api.auth import create_access_token, decode_token
from tasks_api.config import Settings
from tasks_api.schemas import UserRole


def test_round_trip_keeps_id_and_role(settings: Settings) -> None:
    token = create_access_token("alice", settings, role=UserRole.ADMIN)
    user = decode_token(token, settings)
    assert (user.id, user.role) == ("alice", UserRole.ADMIN)


def test_sub_claim_and_missing_role(settings: Settings) -> None:
    token = jwt.encode({"sub": "42"}, settings.jwt_secret, algorithm=settings.jwt_algorithm)
    user = decode_token(token, settings)
    assert (user.id, user.role) == ("42", UserRole.USER)


@pytest.mark.parametrize(
    "claims, secret",
    [
        ({"id": "alice"}, "wrong-secret"),
        ({"role": "user"}, "test-secret"),
        ({"id": "alice", "role": "superuser"}, "test-secret"),
    ],
)
def test_rejected_tokens(settings: Settings, claims: dict, secret: str) -> None:
    token = jwt.encode(claims, secret, algorithm="HS256")
    with pytest.raises(HTTPException) as exc_info:
        decode_token(token, settings)
    assert exc_info.value.status_code == 401


def test_settings_require_jwt_secret(monkeypatch) -> None:
    monkeypatch.delenv("JWT_SECRET", raising=False)
    with pytest.raises(ValueError, match="JWT_SECRET"):
        Settings.from_env()


def test_settings_report_missing_bigquery_vars() -> None:
    with pytest.raises(ValueError, match="BIGQUERY_PROJECT_ID, BIGQUERY_DATASET, BIGQUERY_TABLE"):
        Settings(jwt_secret="x").require_bigquery()
