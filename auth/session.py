"""Login sessions stored in Valkey.

A session is an opaque random token (secrets.token_urlsafe) mapped to one
account id. The Valkey TTL tracks the session expiry and both slide forward
on each validated request. Account status is never cached in the record.
"""

import secrets
from datetime import timedelta
from uuid import UUID

from clients.valkey_client import ValkeyClient
from auth.config import AuthConfig
from auth.types import Session
from auth.exceptions import SessionExpiredError
from utils.timezone import now_utc, parse_iso

_TIMESTAMP_FIELDS = ("created_at", "expires_at", "last_activity_at")


class SessionManager:
    """Create, validate (with sliding expiry) and revoke sessions."""

    KEY_PREFIX = "session:"

    def __init__(self, valkey: ValkeyClient, config: AuthConfig):
        self._valkey = valkey
        self._lifetime = timedelta(hours=config.session_expiry_hours)

    @property
    def ttl_seconds(self) -> int:
        return int(self._lifetime.total_seconds())

    def _key(self, token: str) -> str:
        return self.KEY_PREFIX + token

    def _save(self, session: Session) -> Session:
        record = session.model_dump(mode="json", exclude={"token"})
        self._valkey.set_json(self._key(session.token), record, expire_seconds=self.ttl_seconds)
        return session

    def _load(self, token: str) -> Session | None:
        record = self._valkey.get_json(self._key(token))
        if record is None:
            return None
        # Stored timestamps must carry an offset
        for field in _TIMESTAMP_FIELDS:
            record[field] = parse_iso(record[field])
        return Session(token=token, **record)

    def create_session(self, account_id: UUID) -> Session:
        now = now_utc()
        return self._save(Session(
            token=secrets.token_urlsafe(32),
            account_id=account_id,
            created_at=now,
            expires_at=now + self._lifetime,
            last_activity_at=now,
        ))

    def validate_session(self, token: str) -> Session:
        """Return the session with its expiry pushed forward.

        Raises:
            SessionExpiredError: Token unknown, revoked or past expiry.
        """
        session = self._load(token)
        if session is None:
            raise SessionExpiredError("Session not found or expired")

        now = now_utc()
        if session.expires_at < now:
            # Outlived its TTL
            self.revoke_session(token)
            raise SessionExpiredError("Session expired")

        return self._save(session.model_copy(update={
            "expires_at": now + self._lifetime,
            "last_activity_at": now,
        }))

    def revoke_session(self, token: str) -> None:
        """Safe to call with an unknown token."""
        self._valkey.delete(self._key(token))
