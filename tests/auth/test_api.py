"""Tests for auth HTTP routes over the fully wired app."""

from urllib.parse import parse_qs, urlparse

import pytest

from core.models import AccountStatus
from fakes import TEST_PASSWORD


def _query(response) -> dict:
    return parse_qs(urlparse(response.headers["location"]).query)


class TestLoginForm:

    def test_renders_form_without_flash(self, client):
        response = client.get("/auth/login")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["form"] == "login"
        assert data["flash"] is None

    @pytest.mark.parametrize("code, text", [
        ("account_blocked", "Your account has been blocked."),
        ("account_deleted", "Your account has been deleted."),
        ("invalid_confirmation_link", "Invalid or expired confirmation link."),
    ])
    def test_error_codes_resolve_to_messages(self, client, code, text):
        flash = client.get("/auth/login", params={"error": code}).json()["data"]["flash"]

        assert flash == {"level": "error", "code": code, "text": text}

    def test_unknown_code_shows_nothing(self, client):
        flash = client.get("/auth/login", params={"error": "<script>"}).json()["data"]["flash"]

        assert flash is None

    def test_signed_in_caller_redirected_to_roster(self, client, signed_in):
        signed_in()

        response = client.get("/auth/login", follow_redirects=False)

        assert response.status_code == 303
        assert response.headers["location"] == "/users"


class TestLogin:

    def test_success_sets_http_only_cookie(self, client, make_account):
        account = make_account()

        response = client.post("/auth/login", json={"email": account.email, "password": TEST_PASSWORD})

        assert response.status_code == 200
        assert response.json()["data"]["account"]["id"] == str(account.id)
        cookie = response.headers["set-cookie"]
        assert cookie.startswith("session_token=")
        assert "HttpOnly" in cookie
        assert "samesite=lax" in cookie.lower()

    def test_response_never_includes_password_hash(self, client, make_account):
        account = make_account()

        response = client.post("/auth/login", json={"email": account.email, "password": TEST_PASSWORD})

        assert "password_hash" not in response.json()["data"]["account"]

    def test_bad_credentials_return_401(self, client, make_account):
        account = make_account()

        response = client.post("/auth/login", json={"email": account.email, "password": "wrong"})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "INVALID_CREDENTIALS"
        assert "set-cookie" not in response.headers

    def test_blocked_account_returns_403(self, client, make_account):
        account = make_account(status=AccountStatus.BLOCKED)

        response = client.post("/auth/login", json={"email": account.email, "password": TEST_PASSWORD})

        assert response.status_code == 403
        assert response.json()["error"]["message"] == "Your account has been blocked."

    def test_malformed_email_is_validation_error(self, client):
        response = client.post("/auth/login", json={"email": "nope", "password": "pw"})

        assert response.status_code == 422
        assert "email" in response.json()["error"]["fields"]


class TestRegister:

    def test_creates_account_and_schedules_confirmation(self, client, account_db, notifier):
        response = client.post(
            "/auth/register",
            json={"name": "Alice", "email": "Alice@Example.com", "password": "pw"},
        )

        assert response.status_code == 201
        body = response.json()["data"]
        assert body["account"]["status"] == "unverified"
        assert "confirmation_token" not in body["account"]

        account = account_db.get_account_by_email("alice@example.com")
        notifier.send_confirmation.assert_called_once_with(
            "alice@example.com",
            "Alice",
            f"https://app.example.com/auth/confirm?token={account.confirmation_token}",
        )

    def test_duplicate_email_returns_409_with_field(self, client, make_account, notifier):
        make_account(email="taken@example.com")

        response = client.post(
            "/auth/register",
            json={"name": "Bob", "email": "TAKEN@example.com", "password": "pw"},
        )

        assert response.status_code == 409
        error = response.json()["error"]
        assert error["code"] == "ALREADY_EXISTS"
        assert error["fields"] == {"email": "This email is already registered."}
        notifier.send_confirmation.assert_not_called()

    def test_missing_fields_are_reported_per_field(self, client, account_db):
        response = client.post("/auth/register", json={"name": "", "email": "bad", "password": ""})

        assert response.status_code == 422
        assert set(response.json()["error"]["fields"]) == {"name", "email", "password"}
        assert account_db.all() == []


class TestConfirm:

    def test_valid_token_redirects_with_notice(self, client, make_account, account_db):
        account = make_account(status=AccountStatus.UNVERIFIED, confirmation_token="tok")

        response = client.get("/auth/confirm", params={"token": "tok"}, follow_redirects=False)

        assert response.status_code == 303
        assert _query(response) == {"notice": ["email_confirmed"]}
        assert account_db.get_account_by_id(account.id).status == AccountStatus.ACTIVE

    @pytest.mark.parametrize("params", [{}, {"token": ""}, {"token": "unknown"}])
    def test_bad_token_redirects_with_error(self, client, params):
        response = client.get("/auth/confirm", params=params, follow_redirects=False)

        assert response.status_code == 303
        assert _query(response) == {"error": ["invalid_confirmation_link"]}


class TestLogout:

    def test_revokes_session_and_redirects(self, client, signed_in, valkey):
        signed_in()

        response = client.post("/auth/logout", follow_redirects=False)

        assert response.status_code == 303
        assert urlparse(response.headers["location"]).path == "/auth/login"
        assert not [k for k in valkey.data if k.startswith("session:")]
        assert client.get("/users").status_code == 401

    def test_logout_without_session_still_redirects(self, client):
        response = client.post("/auth/logout", follow_redirects=False)

        assert response.status_code == 303
