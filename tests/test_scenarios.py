"""End-to-end account flows through the wired app."""

from urllib.parse import parse_qs, urlparse

import pytest
from fastapi.testclient import TestClient

from core.models import AccountStatus


@pytest.fixture
def admin_client(app, session_manager, make_account):
    """Second browser, signed in as a different account."""
    admin = make_account(name="Admin")
    other = TestClient(app, raise_server_exceptions=False)
    other.cookies.set("session_token", session_manager.create_session(admin.id).token)
    return other


def _register(client, email="alice@example.com"):
    return client.post("/auth/register", json={"name": "Alice", "email": email, "password": "s3cret"})


def _login(client, email="alice@example.com"):
    return client.post("/auth/login", json={"email": email, "password": "s3cret"})


def _roster_ids(client) -> list[str]:
    return [a["id"] for a in client.get("/users").json()["data"]["accounts"]]


def test_register_confirm_login_block_unblock_delete(client, admin_client, account_db, notifier):
    # Register; the confirmation link goes out after the response
    assert _register(client).status_code == 201
    link = notifier.send_confirmation.call_args.args[2]
    alice = account_db.get_account_by_email("alice@example.com")
    assert alice.status == AccountStatus.UNVERIFIED

    # Confirm
    parsed = urlparse(link)
    response = client.get(parsed.path, params=parse_qs(parsed.query), follow_redirects=False)
    assert response.headers["location"] == "/auth/login?notice=email_confirmed"
    assert account_db.get_account_by_id(alice.id).status == AccountStatus.ACTIVE

    # Login
    response = _login(client)
    assert response.status_code == 200
    assert account_db.get_account_by_id(alice.id).last_login_at is not None
    assert str(alice.id) in _roster_ids(client)

    # Block self; the next request is turned away
    assert client.post("/users/block", json={"ids": [str(alice.id)]}).json()["data"]["affected"] == 1
    response = client.get("/users", follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/auth/login?error=account_blocked"
    assert _login(client).status_code == 403

    # Another admin unblocks; confirmation was done so Alice is Active again
    admin_client.post("/users/unblock", json={"ids": [str(alice.id)]})
    assert account_db.get_account_by_id(alice.id).status == AccountStatus.ACTIVE
    assert _login(client).status_code == 200

    # Then deletes; Alice's live session dies with the account
    admin_client.post("/users/delete", json={"ids": [str(alice.id)]})
    assert str(alice.id) not in _roster_ids(admin_client)
    response = client.get("/users", follow_redirects=False)
    assert response.headers["location"] == "/auth/login?error=account_deleted"
    assert _login(client).status_code == 401


def test_blocked_before_confirming_returns_to_unverified(client, admin_client, account_db, notifier):
    _register(client, email="late@example.com")
    account = account_db.get_account_by_email("late@example.com")

    admin_client.post("/users/block", json={"ids": [str(account.id)]})
    admin_client.post("/users/unblock", json={"ids": [str(account.id)]})

    assert account_db.get_account_by_id(account.id).status == AccountStatus.UNVERIFIED

    # The emailed link still confirms the account
    link = urlparse(notifier.send_confirmation.call_args.args[2])
    client.get(link.path, params=parse_qs(link.query), follow_redirects=False)
    assert account_db.get_account_by_id(account.id).status == AccountStatus.ACTIVE


def test_unverified_account_can_sign_in(client):
    _register(client)

    assert _login(client).status_code == 200
    assert client.get("/users").status_code == 200


def test_second_registration_with_same_email_conflicts(client, account_db, notifier):
    _register(client)

    response = _register(client, email="ALICE@example.com")

    assert response.status_code == 409
    assert len(account_db.all()) == 1
    assert notifier.send_confirmation.call_count == 1


def test_purge_leaves_confirmed_accounts(client, admin_client, account_db):
    _register(client, email="pending@example.com")
    before = len(account_db.all())

    data = admin_client.post("/users/purge-unverified").json()["data"]

    assert data["affected"] == 1
    assert len(account_db.all()) == before - 1
    assert admin_client.get("/users").status_code == 200
