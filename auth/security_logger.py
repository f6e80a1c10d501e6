"""Security event logging for the account audit trail.

Append-only log to the security_events table. Rows carry the account id as a
plain value (no foreign key) so hard-deleted accounts keep their history.
"""

from enum import Enum
from typing import Any
from uuid import UUID

from psycopg2.extras import Json

from clients.postgres_client import PostgresClient
from utils.timezone import now_utc


class SecurityEvent(Enum):
    """Account security event types."""

    ACCOUNT_REGISTERED = "account_registered"
    REGISTRATION_CONFLICT = "registration_conflict"
    EMAIL_CONFIRMED = "email_confirmed"
    CONFIRMATION_FAILED = "confirmation_failed"
    LOGIN_SUCCEEDED = "login_succeeded"
    LOGIN_FAILED = "login_failed"
    SESSION_CREATED = "session_created"
    SESSION_REVOKED = "session_revoked"
    SESSION_TERMINATED = "session_terminated"
    ACCOUNTS_BLOCKED = "accounts_blocked"
    ACCOUNTS_UNBLOCKED = "accounts_unblocked"
    ACCOUNTS_DELETED = "accounts_deleted"
    UNVERIFIED_PURGED = "unverified_purged"


class SecurityLogger:
    """Append-only security event logger."""

    def __init__(self, postgres: PostgresClient):
        self._db = postgres

    def log(
        self,
        event: SecurityEvent,
        email: str | None = None,
        account_id: UUID | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Log security event to database."""
        self._db.execute_returning(
            """INSERT INTO security_events
               (event_type, email, account_id, ip_address, user_agent, details, created_at)
               VALUES (%s, %s, %s, %s, %s, %s, %s)
               RETURNING id""",
            (
                event.value,
                email,
                account_id,
                ip_address,
                user_agent,
                Json(details) if details else None,
                now_utc(),
            ),
        )

    def get_recent_events(
        self,
        email: str | None = None,
        account_id: UUID | None = None,
        event_type: SecurityEvent | None = None,
        limit: int = 100,
    ) -> list[dict]:
        """Security events matching every given filter, newest first."""
        filters = {
            "email": email,
            "account_id": account_id,
            "event_type": event_type.value if event_type else None,
        }
        active = {column: value for column, value in filters.items() if value is not None}
        where_clause = " AND ".join(f"{column} = %s" for column in active) or "TRUE"

        return self._db.execute(
            f"""SELECT id, event_type, email, account_id, ip_address, user_agent, details, created_at
                FROM security_events
                WHERE {where_clause}
                ORDER BY created_at DESC, id DESC
                LIMIT %s""",
            (*active.values(), limit),
        )
