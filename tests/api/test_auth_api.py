"""
Tests for the /api/auth endpoints and bearer-token checks
"""
import time
from datetime import timedelta

from jose import jwt

from farmlog.api.config import settings
from farmlog.api.core.security import create_access_token


# ===================== REGISTER =====================


async def test_register_new_user(unauth_client):
    r = await unauth_client.post("/api/auth/register", json={"username": "carol", "password": "pw3"})
    assert r.status_code == 201
    assert r.json() == {"message": "User registered"}


async def test_register_duplicate_username(unauth_client, users):
    r = await unauth_client.post("/api/auth/register", json={"username": "alice", "password": "other"})
    assert r.status_code == 409
    assert r.json()["error"] == "conflict"


async def test_register_missing_password(unauth_client):
    r = await unauth_client.post("/api/auth/register", json={"username": "carol"})
    assert r.status_code == 400
    assert r.json()["error"] == "bad_request"


async def test_register_blank_username(unauth_client):
    r = await unauth_client.post("/api/auth/register", json={"username": "   ", "password": "pw"})
    assert r.status_code == 400


# ===================== LOGIN =====================


async def test_login_success(unauth_client, users):
    r = await unauth_client.post("/api/auth/login", json={"username": "alice", "password": "pw1"})
    assert r.status_code == 200

    token = r.json()["token"]
    claims = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    assert claims["sub"] == users["alice"].id
    # Valid for seven days
    remaining = claims["exp"] - time.time()
    assert 7 * 86400 - 60 < remaining <= 7 * 86400


async def test_register_then_login(unauth_client):
    await unauth_client.post("/api/auth/register", json={"username": "dave", "password": "secret"})
    r = await unauth_client.post("/api/auth/login", json={"username": "dave", "password": "secret"})
    assert r.status_code == 200
    assert r.json()["token"]


async def test_login_failures_are_indistinguishable(unauth_client, users):
    wrong_password = await unauth_client.post("/api/auth/login", json={"username": "alice", "password": "nope"})
    unknown_user = await unauth_client.post("/api/auth/login", json={"username": "mallory", "password": "nope"})

    assert wrong_password.status_code == unknown_user.status_code == 401
    assert wrong_password.json() == unknown_user.json()
    assert wrong_password.json()["detail"] == "Invalid credentials"


async def test_password_is_not_stored_in_clear(db_session, users):
    assert users["alice"].hashed_password != "pw1"
    assert users["alice"].hashed_password.startswith("$2b$")


# ===================== TOKEN CHECKS =====================


async def test_tasks_require_token(unauth_client):
    r = await unauth_client.get("/api/tasks")
    assert r.status_code == 401
    assert r.json()["error"] == "unauthorized"


async def test_garbage_token_rejected(unauth_client):
    r = await unauth_client.get("/api/tasks", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401


async def test_expired_token_rejected(unauth_client, users):
    token = create_access_token({"sub": users["alice"].id}, expires_delta=timedelta(seconds=-10))
    r = await unauth_client.get("/api/tasks", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401


async def test_token_with_wrong_secret_rejected(unauth_client, users):
    token = jwt.encode({"sub": users["alice"].id, "type": "access"}, "not-the-secret", algorithm="HS256")
    r = await unauth_client.get("/api/tasks", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401


async def test_token_for_unknown_user_rejected(unauth_client, users):
    token = create_access_token({"sub": "00000000-0000-0000-0000-000000000000"})
    r = await unauth_client.get("/api/tasks", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401


async def test_root(unauth_client):
    r = await unauth_client.get("/")
    assert r.status_code == 200
    assert r.json()["endpoints"]["tasks"] == "/api/tasks"
