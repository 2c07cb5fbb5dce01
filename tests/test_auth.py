import sys
import os
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

os.environ.setdefault("secret_key", "testsecret")
os.environ.setdefault("storage_backend", "memory")

import pytest
from fastapi.testclient import TestClient

from helpai.main import app
from helpai.models.user import User
from helpai.core.security import get_password_hash, create_access_token
from helpai.storage.factory import get_storage
from helpai.storage.memory import MemoryStorage


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def client(storage):
    app.dependency_overrides[get_storage] = lambda: storage
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def register_and_login(client, username):
    client.post("/api/auth/register", json={"username": username, "password": "secret"})
    response = client.post("/api/auth/login", data={"username": username, "password": "secret"})
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


def test_register_success(client):
    payload = {"username": "alice", "email": "alice@example.com", "password": "secret"}
    response = client.post("/api/auth/register", json=payload)
    assert response.status_code == 200
    data = response.json()
    assert data["username"] == "alice"
    assert data["email"] == "alice@example.com"
    assert data["id"] is not None
    assert "password_hash" not in data


def test_register_duplicate_username_email(client):
    first = client.post("/api/auth/register", json={"username": "bob", "email": "bob@example.com", "password": "secret"})
    assert first.status_code == 200

    response_username = client.post(
        "/api/auth/register",
        json={"username": "bob", "email": "bob2@example.com", "password": "secret"},
    )
    assert response_username.status_code == 400
    assert response_username.json()["detail"] == "Username already registered"

    response_email = client.post(
        "/api/auth/register",
        json={"username": "bob2", "email": "bob@example.com", "password": "secret"},
    )
    assert response_email.status_code == 400
    assert response_email.json()["detail"] == "Email already registered"


def test_login_success_and_token_validation(client):
    headers = register_and_login(client, "carol")

    me_resp = client.get("/api/auth/me", headers=headers)
    assert me_resp.status_code == 200
    assert me_resp.json()["username"] == "carol"


def test_login_fail_wrong_credentials_or_inactive(client, storage):
    client.post("/api/auth/register", json={"username": "dave", "password": "secret"})

    bad_resp = client.post("/api/auth/login", data={"username": "dave", "password": "wrong"})
    assert bad_resp.status_code == 401
    assert bad_resp.json()["detail"] == "Incorrect username or password"

    storage.create_user(User(username="erin", password_hash=get_password_hash("secret"), active=False))
    inactive_resp = client.post("/api/auth/login", data={"username": "erin", "password": "secret"})
    assert inactive_resp.status_code == 403
    assert inactive_resp.json()["detail"] == "User inactive"


def test_invalid_tokens_are_rejected(client):
    assert client.get("/api/auth/me").status_code == 401
    assert client.get("/api/auth/me", headers={"Authorization": "Bearer garbage"}).status_code == 401

    unknown_user = create_access_token({"sub": "42"})
    response = client.get("/api/conversations/", headers={"Authorization": f"Bearer {unknown_user}"})
    assert response.status_code == 401


def test_guest_header_does_not_grant_account_routes(client):
    assert client.get("/api/auth/me", headers={"x-guest-mode": "true"}).status_code == 401


def test_users_only_see_their_own_conversations(client):
    alice = register_and_login(client, "alice")
    bob = register_and_login(client, "bob")

    created = client.post("/api/conversations/", json={"title": "alice chat"}, headers=alice)
    conversation_id = created.json()["id"]

    assert client.get(f"/api/conversations/{conversation_id}", headers=alice).status_code == 200
    assert client.get(f"/api/conversations/{conversation_id}", headers=bob).status_code == 404
    assert client.get("/api/conversations/", headers=bob).json() == []
