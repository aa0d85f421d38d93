# backend/tests/test_auth.py

import asyncio
import datetime as dt

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from app.core.security import create_access_token, decode_subject, get_current_owner_id
from app.main import app

client = TestClient(app)


def test_anonymous_sign_in_issues_a_token():
    response = client.post("/auth/anonymous")
    assert response.status_code == 201
    body = response.json()
    assert body["token_type"] == "bearer"
    assert len(body["owner_id"]) == 32
    assert decode_subject(body["access_token"]) == body["owner_id"]


def test_anonymous_sign_in_gives_distinct_ids():
    first = client.post("/auth/anonymous").json()["owner_id"]
    second = client.post("/auth/anonymous").json()["owner_id"]
    assert first != second


def test_custom_token_keeps_the_subject():
    custom = create_access_token({"sub": "member-42"}, expires_delta=dt.timedelta(minutes=5))

    response = client.post("/auth/token", json={"token": custom})
    assert response.status_code == 200
    assert response.json()["owner_id"] == "member-42"
    assert decode_subject(response.json()["access_token"]) == "member-42"


def test_custom_token_invalid():
    response = client.post("/auth/token", json={"token": "not-a-jwt"})
    assert response.status_code == 401
    assert response.json()["error"]["message"] == "Invalid custom token"


def test_custom_token_expired():
    expired = create_access_token({"sub": "member-42"}, expires_delta=dt.timedelta(minutes=-1))

    response = client.post("/auth/token", json={"token": expired})
    assert response.status_code == 401


def test_current_owner_id_rejects_bad_token():
    with pytest.raises(HTTPException) as exc_info:
        asyncio.run(get_current_owner_id("garbage"))
    assert exc_info.value.status_code == 401
    assert exc_info.value.headers == {"WWW-Authenticate": "Bearer"}


def test_current_owner_id_accepts_issued_token():
    token = client.post("/auth/anonymous").json()["access_token"]
    assert asyncio.run(get_current_owner_id(token)) == decode_subject(token)


def test_request_body_too_large():
    response = client.post(
        "/auth/token",
        content=b"x" * (70 * 1024),
        headers={"content-type": "application/json"},
    )
    assert response.status_code == 413
    assert response.json()["error"]["code"] == "HTTP_413"
