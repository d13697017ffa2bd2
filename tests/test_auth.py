from django.test import RequestFactory

from flohub.auth import get_token, is_internal_request, issue_token, session_email
from tests.conftest import TEST_API_KEY, TEST_SECRET, USER_EMAIL

factory = RequestFactory()


def test_bearer_token_identifies_user():
    request = factory.get("/api/tasks", HTTP_AUTHORIZATION=f"Bearer {issue_token(USER_EMAIL, TEST_SECRET)}")
    assert session_email(request) == USER_EMAIL


def test_session_cookie_is_accepted():
    request = factory.get("/api/tasks")
    request.COOKIES["next-auth.session-token"] = issue_token(USER_EMAIL, TEST_SECRET)
    assert session_email(request) == USER_EMAIL


def test_empty_bearer_falls_back_to_cookie():
    request = factory.get("/api/tasks", HTTP_AUTHORIZATION="Bearer ")
    request.COOKIES["__Secure-next-auth.session-token"] = issue_token(USER_EMAIL, TEST_SECRET)
    assert session_email(request) == USER_EMAIL


def test_expired_token_is_rejected():
    token = issue_token(USER_EMAIL, TEST_SECRET, expires_in=-10)
    request = factory.get("/api/tasks", HTTP_AUTHORIZATION=f"Bearer {token}")
    assert get_token(request) is None


def test_token_signed_with_other_secret_is_rejected():
    token = issue_token(USER_EMAIL, "some-other-secret")
    request = factory.get("/api/tasks", HTTP_AUTHORIZATION=f"Bearer {token}")
    assert session_email(request) is None


def test_token_without_email_claim():
    token = issue_token("", TEST_SECRET)
    request = factory.get("/api/tasks", HTTP_AUTHORIZATION=f"Bearer {token}")
    assert session_email(request) is None


def test_missing_secret_rejects_everything(monkeypatch):
    token = issue_token(USER_EMAIL, TEST_SECRET)
    monkeypatch.delenv("NEXTAUTH_SECRET")
    request = factory.get("/api/tasks", HTTP_AUTHORIZATION=f"Bearer {token}")
    assert session_email(request) is None


def test_internal_api_key():
    assert is_internal_request(factory.post("/", HTTP_X_API_KEY=TEST_API_KEY))
    assert not is_internal_request(factory.post("/", HTTP_X_API_KEY="wrong"))
    assert not is_internal_request(factory.post("/"))


def test_internal_api_key_unset(monkeypatch):
    monkeypatch.delenv("INTERNAL_API_KEY")
    assert not is_internal_request(factory.post("/", HTTP_X_API_KEY=""))
