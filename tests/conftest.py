"""Shared test fixtures for the account service test suite."""

import os
from pathlib import Path
from unittest.mock import Mock
from uuid import UUID, uuid4

import pytest
from dotenv import load_dotenv

# Load .env file BEFORE any other imports that might use env vars
load_dotenv(Path(__file__).parent.parent / ".env")

from auth.config import AuthConfig
from auth.passwords import PasswordHasher
from auth.security_logger import SecurityLogger
from auth.session import SessionManager
from core.models.account import Account, AccountStatus
from core.notifications import ConfirmationNotifier
from utils.account_context import account_context, clear_current_account_id
from utils.timezone import now_utc

from fakes import TEST_PASSWORD, InMemoryAccountDatabase, InMemoryValkey


SCHEMA_PATH = Path(__file__).parent.parent / "db" / "schema.sql"

# =============================================================================
# ACCOUNT CONTEXT FIXTURES
# =============================================================================


@pytest.fixture(autouse=True)
def reset_account_context():
    """Ensure clean account context before and after each test."""
    clear_current_account_id()
    yield
    clear_current_account_id()


@pytest.fixture
def acting_account_id() -> UUID:
    return UUID("00000000-0000-0000-0000-000000000001")


@pytest.fixture
def as_acting_account(acting_account_id):
    """Run the test as a signed-in account."""
    with account_context(acting_account_id):
        yield acting_account_id


# =============================================================================
# IN-MEMORY INFRASTRUCTURE
# =============================================================================


@pytest.fixture
def config():
    """Test config: plain-HTTP cookies, cheap hashing, fixed base URL."""
    return AuthConfig(
        session_expiry_hours=1,
        session_cookie_secure=False,
        bcrypt_rounds=4,
        app_base_url="https://app.example.com",
    )


@pytest.fixture
def account_db():
    return InMemoryAccountDatabase()


@pytest.fixture
def valkey():
    return InMemoryValkey()


@pytest.fixture
def password_hasher(config):
    return PasswordHasher(rounds=config.bcrypt_rounds)


@pytest.fixture
def session_manager(valkey, config):
    return SessionManager(valkey, config)


@pytest.fixture
def security_logger():
    """Mock SecurityLogger - events are asserted, not stored."""
    return Mock(spec=SecurityLogger)


@pytest.fixture
def notifier():
    """Mock notifier - no actual emails sent in tests."""
    return Mock(spec=ConfirmationNotifier)


@pytest.fixture
def make_account(account_db, password_hasher):
    """Insert an account straight into the in-memory store."""

    def _make(
        name: str = "Alice",
        email: str | None = None,
        status: AccountStatus = AccountStatus.ACTIVE,
        confirmation_token: str | None = None,
        password: str = TEST_PASSWORD,
        last_login_at=None,
        created_at=None,
    ) -> Account:
        return account_db.put(Account(
            id=uuid4(),
            name=name,
            email=email or f"{name.lower()}-{uuid4().hex[:8]}@example.com",
            password_hash=password_hasher.hash(password),
            status=status,
            last_login_at=last_login_at,
            created_at=created_at or now_utc(),
            confirmation_token=confirmation_token,
        ))

    return _make


# =============================================================================
# APP & CLIENT FIXTURES
# =============================================================================


@pytest.fixture
def app(config, account_db, session_manager, security_logger, notifier, password_hasher):
    """Fully wired app over the in-memory store and session backend."""
    from api.app import create_app

    return create_app(
        config=config,
        account_db=account_db,
        session_manager=session_manager,
        security_logger=security_logger,
        notifier=notifier,
        password_hasher=password_hasher,
    )


@pytest.fixture
def client(app):
    from fastapi.testclient import TestClient

    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def signed_in(client, session_manager, make_account):
    """Client carrying a valid session for a fresh Active account."""

    def _sign_in(account: Account | None = None) -> Account:
        account = account or make_account(name="Admin")
        session = session_manager.create_session(account.id)
        client.cookies.set("session_token", session.token)
        return account

    return _sign_in


# =============================================================================
# DATABASE FIXTURES
# =============================================================================


@pytest.fixture(scope="session")
def db():
    """Session-scoped PostgresClient against TEST_DATABASE_URL, schema applied."""
    database_url = os.getenv("TEST_DATABASE_URL")
    if not database_url:
        pytest.skip("TEST_DATABASE_URL not set")

    from clients.postgres_client import PostgresClient

    client = PostgresClient(database_url)
    with client.transaction() as cur:
        cur.execute(SCHEMA_PATH.read_text())
    yield client
    client.close()


@pytest.fixture
def clean_db(db):
    """Empty both tables before the test."""
    db.execute("TRUNCATE accounts, security_events")
    yield db
