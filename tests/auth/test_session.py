"""Tests for SessionManager - session token lifecycle."""

from datetime import timedelta
from uuid import uuid4

import pytest

from auth.exceptions import SessionExpiredError
from utils.timezone import now_utc


class TestCreateSession:
    """Test session creation."""

    def test_returns_session_with_token(self, session_manager):
        """Created session has non-empty token."""
        session = session_manager.create_session(uuid4())

        assert session.token
        assert len(session.token) > 20

    def test_session_has_correct_account_id(self, session_manager):
        account_id = uuid4()

        session = session_manager.create_session(account_id)

        assert session.account_id == account_id

    def test_stored_with_ttl(self, session_manager, valkey):
        """Valkey key expires with the session."""
        session = session_manager.create_session(uuid4())

        assert valkey.ttls[f"session:{session.token}"] == 3600

    def test_different_sessions_get_different_tokens(self, session_manager):
        account_id = uuid4()

        assert session_manager.create_session(account_id).token != session_manager.create_session(account_id).token


class TestValidateSession:
    """Test session validation."""

    def test_valid_session_returns_session(self, session_manager):
        created = session_manager.create_session(uuid4())

        validated = session_manager.validate_session(created.token)

        assert validated.account_id == created.account_id
        assert validated.token == created.token

    def test_validation_slides_expiry(self, session_manager, valkey):
        """Each validation pushes expiry forward."""
        created = session_manager.create_session(uuid4())
        stale = valkey.get_json(f"session:{created.token}")
        stale["expires_at"] = (now_utc() + timedelta(minutes=1)).isoformat()
        valkey.set_json(f"session:{created.token}", stale)

        validated = session_manager.validate_session(created.token)

        assert validated.expires_at > now_utc() + timedelta(minutes=59)

    def test_unknown_token_raises(self, session_manager):
        with pytest.raises(SessionExpiredError):
            session_manager.validate_session("no-such-token")

    def test_expired_session_raises_and_is_removed(self, session_manager, valkey):
        created = session_manager.create_session(uuid4())
        data = valkey.get_json(f"session:{created.token}")
        data["expires_at"] = (now_utc() - timedelta(seconds=1)).isoformat()
        valkey.set_json(f"session:{created.token}", data)

        with pytest.raises(SessionExpiredError):
            session_manager.validate_session(created.token)

        assert valkey.get(f"session:{created.token}") is None


class TestRevokeSession:

    def test_revoked_session_no_longer_validates(self, session_manager):
        created = session_manager.create_session(uuid4())

        session_manager.revoke_session(created.token)

        with pytest.raises(SessionExpiredError):
            session_manager.validate_session(created.token)

    def test_revoke_unknown_token_is_safe(self, session_manager):
        session_manager.revoke_session("no-such-token")
