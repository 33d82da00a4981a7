"""
API tests through FastAPI's TestClient with service dependencies overridden.
"""

import pytest
from fastapi.testclient import TestClient

from component_studio.dependencies import (
    get_dispatcher,
    get_generator,
    get_session_service,
    get_user_storage,
)
from component_studio.main import app
from component_studio.services.session_service import SEND_FALLBACK_REPLY
from component_studio.utils.auth import create_access_token


USER_ID = "api-user"


@pytest.fixture
def client(session_service, generator, dispatcher, user_storage):
    app.dependency_overrides[get_session_service] = lambda: session_service
    app.dependency_overrides[get_generator] = lambda: generator
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    app.dependency_overrides[get_user_storage] = lambda: user_storage
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {create_access_token({'sub': USER_ID})}"}


def create_session(client, auth_headers, name="Buttons"):
    response = client.post("/sessions", json={"name": name}, headers=auth_headers)
    assert response.status_code == 201
    return response.json()


def register_and_login(client, username, password="secret123"):
    response = client.post("/auth/register", json={"username": username, "password": password})
    assert response.status_code == 201
    token = client.post("/auth/login", data={"username": username, "password": password}).json()["access_token"]
    return {"Authorization": f"Bearer {token}"}


class TestPublicEndpoints:

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["status"] == "running"

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_requires_token(self, client):
        assert client.get("/sessions").status_code in (401, 403)

    def test_rejects_bad_token(self, client):
        response = client.get("/sessions", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401


class TestAuth:

    def test_register_login_me(self, client):
        response = client.post("/auth/register", json={
            "username": "carol",
            "password": "secret123",
            "email": "carol@studio.io",
        })
        assert response.status_code == 201
        assert "hashed_password" not in response.json()

        duplicate = client.post("/auth/register", json={"username": "carol", "password": "secret123"})
        assert duplicate.status_code == 400

        bad_login = client.post("/auth/login", data={"username": "carol", "password": "wrong"})
        assert bad_login.status_code == 401

        login = client.post("/auth/login", data={"username": "carol", "password": "secret123"})
        assert login.status_code == 200
        token = login.json()["access_token"]

        me = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["username"] == "carol"
        assert me.json()["usage"]["total_sessions"] == 0

    def test_update_profile(self, client):
        headers = register_and_login(client, "erin")

        response = client.put(
            "/auth/profile",
            json={"full_name": "Erin Doe", "email": "erin@studio.io"},
            headers=headers,
        )
        assert response.status_code == 200
        assert response.json()["full_name"] == "Erin Doe"
        assert "hashed_password" not in response.json()

        me = client.get("/auth/me", headers=headers).json()
        assert me["email"] == "erin@studio.io"
        assert me["username"] == "erin"

        invalid = client.put("/auth/profile", json={"email": "not-an-email"}, headers=headers)
        assert invalid.status_code == 422

    def test_change_password(self, client):
        headers = register_and_login(client, "frank")

        wrong = client.put(
            "/auth/change-password",
            json={"current_password": "nope", "new_password": "fresh456"},
            headers=headers,
        )
        assert wrong.status_code == 400
        assert wrong.json()["detail"] == "Current password is incorrect"

        changed = client.put(
            "/auth/change-password",
            json={"current_password": "secret123", "new_password": "fresh456"},
            headers=headers,
        )
        assert changed.status_code == 200
        assert changed.json()["success"] is True

        old = client.post("/auth/login", data={"username": "frank", "password": "secret123"})
        assert old.status_code == 401
        new = client.post("/auth/login", data={"username": "frank", "password": "fresh456"})
        assert new.status_code == 200

    def test_delete_account(self, client):
        headers = register_and_login(client, "gina")

        wrong = client.request("DELETE", "/auth/account", json={"password": "nope"}, headers=headers)
        assert wrong.status_code == 400
        assert wrong.json()["detail"] == "Password is incorrect"

        deleted = client.request(
            "DELETE", "/auth/account", json={"password": "secret123"}, headers=headers
        )
        assert deleted.status_code == 200
        assert deleted.json()["success"] is True

        login = client.post("/auth/login", data={"username": "gina", "password": "secret123"})
        assert login.status_code == 401
        assert client.get("/auth/me", headers=headers).status_code == 401

        taken = client.post("/auth/register", json={"username": "gina", "password": "secret123"})
        assert taken.status_code == 400


class TestSessionEndpoints:

    def test_create_list_get(self, client, auth_headers):
        created = create_session(client, auth_headers)
        assert created["settings"]["model"] == "gpt-4o-mini"

        listing = client.get("/sessions", headers=auth_headers).json()
        assert listing["pagination"]["total"] == 1
        assert listing["sessions"][0]["id"] == created["id"]

        fetched = client.get(f"/sessions/{created['id']}", headers=auth_headers)
        assert fetched.status_code == 200
        assert fetched.json()["name"] == "Buttons"

    def test_list_sort(self, client, auth_headers):
        for name in ("Beta", "Alpha", "Gamma"):
            create_session(client, auth_headers, name=name)

        by_name = client.get("/sessions", params={"sort": "name"}, headers=auth_headers)
        assert [s["name"] for s in by_name.json()["sessions"]] == ["Alpha", "Beta", "Gamma"]

        newest = client.get("/sessions", params={"sort": "-created_at"}, headers=auth_headers)
        assert newest.status_code == 200
        assert len(newest.json()["sessions"]) == 3

        rejected = client.get("/sessions", params={"sort": "password"}, headers=auth_headers)
        assert rejected.status_code == 422

    def test_invalid_name_rejected(self, client, auth_headers):
        response = client.post("/sessions", json={"name": ""}, headers=auth_headers)
        assert response.status_code == 422

    def test_unknown_session(self, client, auth_headers):
        response = client.get("/sessions/does-not-exist", headers=auth_headers)
        assert response.status_code == 404
        assert response.json()["detail"] == "Session not found"

    def test_update_archive_duplicate(self, client, auth_headers):
        created = create_session(client, auth_headers)
        session_id = created["id"]

        updated = client.put(f"/sessions/{session_id}", json={"name": "Renamed"}, headers=auth_headers)
        assert updated.json()["name"] == "Renamed"

        archived = client.put(f"/sessions/{session_id}/archive", headers=auth_headers)
        assert archived.json()["status"] == "archived"

        copy = client.post(f"/sessions/{session_id}/duplicate", headers=auth_headers)
        assert copy.status_code == 201
        assert copy.json()["name"] == "Renamed (Copy)"

        archived_list = client.get("/sessions", params={"status": "archived"}, headers=auth_headers)
        assert [s["id"] for s in archived_list.json()["sessions"]] == [session_id]

    def test_deleted_session_cannot_take_messages(self, client, auth_headers):
        created = create_session(client, auth_headers)
        session_id = created["id"]

        assert client.delete(f"/sessions/{session_id}", headers=auth_headers).status_code == 200

        response = client.post(
            f"/sessions/{session_id}/messages", json={"content": "hello"}, headers=auth_headers
        )
        assert response.status_code == 409

    def test_stats(self, client, auth_headers):
        create_session(client, auth_headers)
        response = client.get("/sessions/stats", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["stats"]["active"]["count"] == 1


class TestMessageEndpoints:

    def test_send_message_generates_component(self, client, auth_headers):
        session_id = create_session(client, auth_headers)["id"]

        response = client.post(
            f"/sessions/{session_id}/messages", json={"content": "a primary button"}, headers=auth_headers
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["component"]["name"] == "PrimaryButton"
        assert body["data"]["component"]["metadata"]["tokens"] == 42
        assert body["data"]["session"]["current_component"]["version"] == 1

        messages = client.get(f"/sessions/{session_id}/messages", headers=auth_headers).json()
        assert [m["type"] for m in messages["messages"]] == ["user", "assistant"]

    def test_generation_failure_returns_502_with_fallback(self, client, auth_headers, provider):
        session_id = create_session(client, auth_headers)["id"]
        provider.chat_completion.side_effect = RuntimeError("upstream down")

        response = client.post(
            f"/sessions/{session_id}/messages", json={"content": "a primary button"}, headers=auth_headers
        )

        assert response.status_code == 502
        body = response.json()
        assert body["success"] is False
        assert body["data"]["assistant_message"]["content"] == SEND_FALLBACK_REPLY
        assert body["data"]["user_message"]["content"] == "a primary button"

    def test_edit_assistant_message_rejected(self, client, auth_headers):
        session_id = create_session(client, auth_headers)["id"]
        data = client.post(
            f"/sessions/{session_id}/messages", json={"content": "a primary button"}, headers=auth_headers
        ).json()["data"]

        response = client.put(
            f"/sessions/{session_id}/messages/{data['assistant_message']['id']}",
            json={"content": "rewrite"},
            headers=auth_headers,
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Only user messages can be edited"

        edited = client.put(
            f"/sessions/{session_id}/messages/{data['user_message']['id']}",
            json={"content": "a secondary button"},
            headers=auth_headers,
        )
        assert edited.status_code == 200
        assert edited.json()["content"] == "a secondary button"

    def test_regenerate(self, client, auth_headers):
        session_id = create_session(client, auth_headers)["id"]
        data = client.post(
            f"/sessions/{session_id}/messages", json={"content": "a primary button"}, headers=auth_headers
        ).json()["data"]

        rejected = client.post(
            f"/sessions/{session_id}/messages/{data['assistant_message']['id']}/regenerate",
            headers=auth_headers,
        )
        assert rejected.status_code == 400
        assert rejected.json()["detail"] == "Can only regenerate responses for user messages"

        response = client.post(
            f"/sessions/{session_id}/messages/{data['user_message']['id']}/regenerate",
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json()["data"]["session"]["current_component"]["version"] == 2

    def test_delete_unknown_message(self, client, auth_headers):
        session_id = create_session(client, auth_headers)["id"]
        response = client.delete(f"/sessions/{session_id}/messages/nope", headers=auth_headers)
        assert response.status_code == 404
        assert response.json()["detail"] == "Message not found"


class TestComponentEndpoints:

    def test_generate(self, client, auth_headers, provider):
        response = client.post(
            "/components/generate",
            json={"prompt": "a primary button", "settings": {"temperature": 0.1}},
            headers=auth_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["name"] == "PrimaryButton"
        assert body["metadata"]["temperature"] == 0.1
        assert provider.chat_completion.call_args.kwargs["temperature"] == 0.1

    def test_generate_failure(self, client, auth_headers, provider):
        provider.chat_completion.side_effect = RuntimeError("boom")
        response = client.post(
            "/components/generate", json={"prompt": "a primary button"}, headers=auth_headers
        )
        assert response.status_code == 502
        assert response.json()["detail"].startswith("Failed to generate component")

    def test_models(self, client, auth_headers):
        response = client.get("/components/models", headers=auth_headers)
        assert response.status_code == 200
        assert {m["provider"] for m in response.json()["models"]} == {"openai"}
