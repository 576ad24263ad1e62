"""Pytest configuration and fixtures."""

import pytest
from fastapi.testclient import TestClient

from app.config import Settings
from app.main import create_app
from app.services.auth_service import AuthService
from app.services.federated import FederatedProfile
from app.services.identity_store import InMemoryIdentityStore
from common.exceptions import FederatedAuthError
from common.utils.security import TokenService

TEST_SECRET = "test-secret"


class FakeFederatedVerifier:
    """Stands in for Firebase: accepts only the tokens it was given profiles for."""

    configured = True

    def __init__(self):
        self.profiles = {}

    def add(self, token, email, name="Google User", picture_url="https://img.example/p.png", subject_id=None):
        self.profiles[token] = FederatedProfile(
            email=email,
            name=name,
            picture_url=picture_url,
            subject_id=subject_id or f"uid-{token}",
        )

    def exchange(self, provider_token):
        try:
            return self.profiles[provider_token]
        except KeyError:
            raise FederatedAuthError("Authentication failed")


class FakeAssistant:
    """Records prompts instead of calling Gemini."""

    configured = True

    def __init__(self):
        self.questions = []

    async def answer_health_question(self, query):
        self.questions.append(query)
        return f"Answer to: {query}"

    async def medication_info(self, name):
        self.questions.append(name)
        return f"About {name}"


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture
def settings():
    return Settings(
        STORE_BACKEND="memory",
        JWT_SECRET=TEST_SECRET,
        ADMIN_EMAIL="admin@healthpal.io",
        ADMIN_PASSWORD="admin-pass",
        _env_file=None,
    )


@pytest.fixture
def store():
    return InMemoryIdentityStore()


@pytest.fixture
def tokens():
    return TokenService(TEST_SECRET)


@pytest.fixture
def federated():
    return FakeFederatedVerifier()


@pytest.fixture
def assistant():
    return FakeAssistant()


@pytest.fixture
def auth_service(store, tokens, federated):
    return AuthService(store, tokens, federated)


@pytest.fixture
def app(settings, store, federated, assistant):
    return create_app(settings, store=store, federated=federated, assistant=assistant)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


def bearer(token):
    return {"Authorization": f"Bearer {token}"}
