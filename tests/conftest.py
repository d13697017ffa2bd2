"""Shared fixtures: in-memory Firestore, session tokens and API clients."""
import os

import pytest
from django.test import Client

from flohub.auth import issue_token
from flohub.firebase_service import firestore_service
from tests.fakes import FakeFirestore

os.environ.setdefault("OPENAI_API_KEY", "sk-test-fake-key")

TEST_SECRET = "test-nextauth-secret"
TEST_API_KEY = "test-internal-key"
USER_EMAIL = "cat@flohub.xyz"
OTHER_EMAIL = "dog@flohub.xyz"


@pytest.fixture(autouse=True)
def auth_env(monkeypatch):
    monkeypatch.setenv("NEXTAUTH_SECRET", TEST_SECRET)
    monkeypatch.setenv("INTERNAL_API_KEY", TEST_API_KEY)


@pytest.fixture()
def fake_db(monkeypatch):
    db = FakeFirestore()
    monkeypatch.setattr(firestore_service, "_db", db)
    return db


def make_client(email=USER_EMAIL):
    token = issue_token(email, TEST_SECRET)
    return Client(HTTP_AUTHORIZATION=f"Bearer {token}")


@pytest.fixture()
def client(fake_db):
    """Client signed in as USER_EMAIL."""
    return make_client()


@pytest.fixture()
def other_client(fake_db):
    return make_client(OTHER_EMAIL)


@pytest.fixture()
def anon_client(fake_db):
    return Client()


@pytest.fixture()
def internal_client(fake_db):
    return Client(HTTP_X_API_KEY=TEST_API_KEY)
