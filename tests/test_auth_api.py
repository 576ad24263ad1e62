"""Tests for the /api/auth endpoints."""

import asyncio

from fastapi.testclient import TestClient

from app.main import create_app
from app.services.identity_store import InMemoryIdentityStore
from conftest import bearer


def register(client, email="a@x.com", password="secret1", name="Ann", **extra):
    return client.post("/api/auth/register", json={"email": email, "password": password, "name": name, **extra})


class TestRegister:

    def test_register_patient(self, client):
        response = register(client)
        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["token"]
        assert body["user"]["email"] == "a@x.com"
        assert body["user"]["role"] == "patient"
        assert "password_hash" not in body["user"]

    def test_register_duplicate_email(self, client):
        assert register(client).status_code == 201
        response = register(client, name="Someone Else")
        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "duplicate_email"

    def test_register_duplicate_email_case_insensitive(self, client):
        register(client, email="a@x.com")
        assert register(client, email="A@X.COM").status_code == 400

    def test_register_invalid_email(self, client):
        response = register(client, email="not-an-email")
        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "bad_request"
        assert body["message"].startswith("Email: ")

    def test_register_missing_field(self, client):
        response = client.post("/api/auth/register", json={"email": "a@x.com", "password": "secret1"})
        assert response.status_code == 400
        assert response.json()["message"].startswith("Name: ")

    def test_register_doctor(self, client):
        response = register(client, email="d@x.com", role="doctor", specialization="Cardiology")
        user = response.json()["user"]
        assert user["role"] == "doctor"
        assert user["verification_status"] == "pending"
        assert user["specialization"] == "Cardiology"


class TestLogin:

    def test_login(self, client):
        register(client)
        response = client.post("/api/auth/login", json={"email": "a@x.com", "password": "secret1"})
        assert response.status_code == 200
        assert response.json()["user"]["name"] == "Ann"

    def test_login_bad_password(self, client):
        register(client)
        response = client.post("/api/auth/login", json={"email": "a@x.com", "password": "nope"})
        assert response.status_code == 401
        assert response.json()["error"] == "invalid_credentials"

    def test_admin_login_with_seeded_admin(self, client):
        response = client.post("/api/auth/admin-login", json={"email": "admin@healthpal.io", "password": "admin-pass"})
        assert response.status_code == 200
        assert response.json()["user"]["role"] == "admin"

    def test_admin_login_as_patient(self, client):
        register(client)
        response = client.post("/api/auth/admin-login", json={"email": "a@x.com", "password": "secret1"})
        assert response.status_code == 403
        assert response.json()["error"] == "forbidden"


class TestGoogle:

    def test_google_login_creates_patient_once(self, client, federated):
        federated.add("g-token", "g@x.com", name="Gee", subject_id="uid-g")
        first = client.post("/api/auth/google", json={"token": "g-token"}).json()
        second = client.post("/api/auth/google", json={"token": "g-token"}).json()
        assert first["user"]["id"] == second["user"]["id"]
        assert first["user"]["role"] == "patient"
        assert first["user"]["profile_image"] == "https://img.example/p.png"

    def test_google_login_without_token(self, client):
        response = client.post("/api/auth/google", json={})
        assert response.status_code == 400
        assert response.json()["message"] == "No token provided"

    def test_google_login_rejected_token(self, client):
        response = client.post("/api/auth/google", json={"token": "bogus"})
        assert response.status_code == 401
        assert response.json()["error"] == "federated_auth_error"

    def test_register_google_doctor(self, client, federated):
        federated.add("g-doc", "doc@x.com")
        response = client.post("/api/auth/register-google", json={"token": "g-doc", "role": "doctor"})
        assert response.status_code == 201
        assert response.json()["user"]["verification_status"] == "pending"


class TestTokenRefresh:

    def test_authenticate_refreshes(self, client, tokens):
        registered = register(client).json()
        response = client.post("/api/auth/authenticate", json={"token": registered["token"]})
        assert response.status_code == 200
        claims = tokens.verify(response.json()["token"])
        assert claims.identity_id == registered["user"]["id"]

    def test_verify_valid_token(self, client):
        registered = register(client).json()
        response = client.post("/api/auth/verify", json={"token": registered["token"]})
        assert response.status_code == 200
        assert response.json()["message"] == "Token is valid"

    def test_verify_invalid_token(self, client):
        response = client.post("/api/auth/verify", json={"token": "garbage"})
        assert response.status_code == 401
        assert response.json()["success"] is False

    def test_verify_missing_token(self, client):
        assert client.post("/api/auth/verify", json={}).status_code == 400

    def test_verify_pending_doctor_gets_no_token(self, client):
        registered = register(client, email="d@x.com", role="doctor").json()
        response = client.post("/api/auth/verify", json={"token": registered["token"]})
        assert response.status_code == 403
        body = response.json()
        assert body["pendingVerification"] is True
        assert body["error"] == "pending_verification"
        assert "token" not in body

    def test_verify_deleted_identity(self, client, tokens):
        token = tokens.issue("000000000000000000000000", "patient")
        response = client.post("/api/auth/verify", json={"token": token})
        assert response.status_code == 401
        assert response.json()["message"] == "User no longer exists"


class TestSelfService:

    def test_me(self, client):
        registered = register(client).json()
        response = client.get("/api/auth/me", headers=bearer(registered["token"]))
        assert response.status_code == 200
        assert response.json()["user"]["id"] == registered["user"]["id"]

    def test_get_verify_with_bearer(self, client):
        registered = register(client).json()
        response = client.get("/api/auth/verify", headers=bearer(registered["token"]))
        assert response.status_code == 200
        assert response.json()["success"] is True

    def test_me_for_deleted_identity(self, client, tokens):
        token = tokens.issue("000000000000000000000000", "patient")
        assert client.get("/api/auth/me", headers=bearer(token)).status_code == 404

    def test_update_profile(self, client):
        token = register(client).json()["token"]
        response = client.put("/api/auth/profile", json={"name": "Annie"}, headers=bearer(token))
        assert response.status_code == 200
        assert response.json()["user"]["name"] == "Annie"

    def test_update_password(self, client):
        token = register(client).json()["token"]
        response = client.put(
            "/api/auth/password",
            json={"current_password": "secret1", "new_password": "secret2"},
            headers=bearer(token),
        )
        assert response.status_code == 200
        login = client.post("/api/auth/login", json={"email": "a@x.com", "password": "secret2"})
        assert login.status_code == 200

    def test_update_password_wrong_current(self, client):
        token = register(client).json()["token"]
        response = client.put(
            "/api/auth/password",
            json={"current_password": "wrong", "new_password": "secret2"},
            headers=bearer(token),
        )
        assert response.status_code == 401

    def test_update_notification_settings(self, client):
        token = register(client).json()["token"]
        response = client.put("/api/auth/notification-settings", json={"push": False}, headers=bearer(token))
        assert response.json()["user"]["notification_settings"] == {"email": True, "sms": True, "push": False}


class LoopWatchingStore(InMemoryIdentityStore):
    """Records whether each email lookup ran on the event loop thread."""

    def __init__(self):
        super().__init__()
        self.on_loop = []

    def find_all_by_email(self, email):
        try:
            asyncio.get_running_loop()
            self.on_loop.append(True)
        except RuntimeError:
            self.on_loop.append(False)
        return super().find_all_by_email(email)


class TestBlockingWorkOffLoop:

    def test_credential_checks_run_in_threadpool(self, settings, federated, assistant):
        store = LoopWatchingStore()
        app = create_app(settings, store=store, federated=federated, assistant=assistant)
        with TestClient(app) as client:
            store.on_loop.clear()
            register(client)
            client.post("/api/auth/login", json={"email": "a@x.com", "password": "secret1"})
        assert store.on_loop
        assert not any(store.on_loop)
